"""Taichi-based Whitted-style ray tracer.

This package renders scenes of triangles and spheres lit by point lights,
with Phong shading, hard shadows, mirror reflection and refraction, and
writes the result as an 8-bit RGB image. Besides the full light-transport
mode it can render per-pixel depth and surface normals.

Subpackages:
    core: Ray and vector utilities, shading, integrator and renderer
    geometry: Sphere and triangle primitives and intersection algorithms
    scene: Scene model, builder, file loader and GPU-resident scene data
    camera: Pinhole camera with ray generation
    preview: Post-processing, PNG export and Matplotlib preview

Command-line use:
    rtracer scene.obj --width 640 --height 480 --output out.png
"""

__version__ = "0.1.0"
