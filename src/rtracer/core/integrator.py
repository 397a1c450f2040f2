"""Whitted-style recursive ray tracing integrator.

This module implements the render kernels for the three render modes:

    full    recursive light transport (local shading + reflection + refraction)
    depth   distance to the nearest hit per pixel
    normal  shading normal at the nearest hit per pixel

Light transport follows the classic recursive model. At every hit the local
Phong shading forms the base radiance; a reflected ray weighted by albedo[1]
and a refracted ray weighted by albedo[2] are traced with one less unit of
depth budget. Total internal reflection drops the refracted ray. When the ray
origin lies inside any sphere of the scene the ray is treated as travelling
through a dielectric: reflection is disabled, the refraction share becomes 1,
and the refraction index is used directly instead of its reciprocal.

Taichi functions cannot recurse, so the recursion runs on an explicit
depth-first work stack per pixel. Each stack entry carries its own remaining
depth budget and the product of the shares along its path, which gives the
same sum as the recursive formulation.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from rtracer.camera.pinhole import CameraOptions, setup_camera
    >>> from rtracer.core.integrator import render_full, setup_render_target
    >>> from rtracer.scene.intersection import upload_scene
    >>>
    >>> upload_scene(scene)
    >>> setup_camera(CameraOptions(screen_width=320, screen_height=240))
    >>> setup_render_target(320, 240)
    >>> render_full(depth=4)
"""

import logging
from collections.abc import Callable, Generator, Sequence

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from rtracer.camera.pinhole import get_ray
from rtracer.core.ray import dot, normalize, reflect, refract, sign
from rtracer.core.shading import local_illumination
from rtracer.preview.display import DEPTH_MISS_DISTANCE
from rtracer.scene.intersection import find_nearest, get_material, is_inside_any_sphere

logger = logging.getLogger(__name__)

# Type alias for 3D vectors
vec3 = tm.vec3

# =============================================================================
# Rendering Constants
# =============================================================================

# Offset along the normal for secondary ray origins, avoids self-intersection
SURFACE_BIAS = 1e-3


# Largest supported recursion depth
MAX_TRACE_DEPTH = 16

# Depth-first traversal of a binary tree of depth d never holds more than
# d + 1 pending entries
STACK_SIZE = MAX_TRACE_DEPTH + 2

# Progress callback receives (rows_done, total_rows)
ProgressCallback = Callable[[int, int], None]

# =============================================================================
# Render Target (Image Buffer)
# =============================================================================

# Maximum supported image dimensions (preallocated to avoid kernel recompilation)
MAX_IMAGE_WIDTH = 2048
MAX_IMAGE_HEIGHT = 2048

# Image dimensions (actual active size)
_image_width = ti.field(dtype=ti.i32, shape=())
_image_height = ti.field(dtype=ti.i32, shape=())

# Radiance buffer indexed by (column, row), row 0 at the top
_color_buffer = ti.Vector.field(3, dtype=ti.f32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

# Flag to track if render target is initialized
_render_target_initialized = ti.field(dtype=ti.i32, shape=())

# Per-column work stacks for the full-mode kernel, which renders one row per launch
_stack_origin = ti.Vector.field(3, dtype=ti.f32, shape=(MAX_IMAGE_WIDTH, STACK_SIZE))
_stack_direction = ti.Vector.field(3, dtype=ti.f32, shape=(MAX_IMAGE_WIDTH, STACK_SIZE))
_stack_weight = ti.field(dtype=ti.f32, shape=(MAX_IMAGE_WIDTH, STACK_SIZE))
_stack_depth = ti.field(dtype=ti.i32, shape=(MAX_IMAGE_WIDTH, STACK_SIZE))


def setup_render_target(width: int, height: int) -> None:
    """Initialize the render target buffers.

    Sets the active image dimensions and clears the buffers. The buffers are
    preallocated to MAX_IMAGE_WIDTH x MAX_IMAGE_HEIGHT.

    Args:
        width: Image width in pixels (max MAX_IMAGE_WIDTH).
        height: Image height in pixels (max MAX_IMAGE_HEIGHT).

    Raises:
        ValueError: If dimensions are not positive or exceed the maximum.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Image dimensions must be positive, got {width}x{height}")
    if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
        raise ValueError(
            f"Image dimensions ({width}x{height}) exceed maximum supported "
            f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
        )

    _image_width[None] = width
    _image_height[None] = height
    _render_target_initialized[None] = 1

    clear_render_target()


def clear_render_target() -> None:
    """Clear the radiance buffer to zero."""
    _color_buffer.fill(0.0)


def reset_render_target() -> None:
    """Forget the render target so it must be set up again."""
    _render_target_initialized[None] = 0
    clear_render_target()


def get_image_dimensions() -> tuple[int, int]:
    """Get the current render target dimensions as (width, height)."""
    return int(_image_width[None]), int(_image_height[None])


def _check_render_target_initialized() -> None:
    """Check if render target is initialized and raise if not."""
    if _render_target_initialized[None] == 0:
        raise RuntimeError("Render target not set up. Call setup_render_target() first.")


def _check_depth(depth: int) -> None:
    if not 0 <= depth <= MAX_TRACE_DEPTH:
        raise ValueError(f"Recursion depth must be in [0, {MAX_TRACE_DEPTH}], got {depth}")


def get_image() -> "ti.MatrixField":
    """Get the radiance buffer field.

    Note: This returns the full preallocated buffer. Use get_image_dimensions()
    to determine the active region.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()
    return _color_buffer


# =============================================================================
# Light Transport Core
# =============================================================================


@ti.func
def _offset_ray_origin(point: vec3, normal: vec3, direction: vec3) -> vec3:
    """Push a secondary ray origin off the surface along the normal.

    The offset moves to the side of the surface the new ray travels into.
    """
    return point + sign(dot(direction, normal)) * normal * SURFACE_BIAS


@ti.func
def _push(slot: ti.i32, sp: ti.i32, origin: vec3, direction: vec3, weight: ti.f32, depth: ti.i32):
    _stack_origin[slot, sp] = origin
    _stack_direction[slot, sp] = direction
    _stack_weight[slot, sp] = weight
    _stack_depth[slot, sp] = depth


@ti.func
def trace(origin: vec3, direction: vec3, depth: ti.i32, slot: ti.i32) -> vec3:
    """Trace a ray through the scene and return the radiance along it.

    A ray with no depth budget left, or one that misses everything,
    contributes nothing. Children with a zero share are never traced.

    Args:
        origin: The ray origin.
        direction: The unit ray direction.
        depth: Remaining recursion budget (0 returns zero radiance).
        slot: Which work stack to use; distinct for concurrently traced rays.

    Returns:
        The accumulated radiance (RGB), unbounded.
    """
    radiance = vec3(0.0, 0.0, 0.0)

    _push(slot, 0, origin, direction, 1.0, depth)
    sp = 1

    while sp > 0:
        sp -= 1
        ray_origin = _stack_origin[slot, sp]
        ray_direction = _stack_direction[slot, sp]
        weight = _stack_weight[slot, sp]
        budget = _stack_depth[slot, sp]

        if budget > 0:
            rec = find_nearest(ray_origin, ray_direction)
            if rec.hit == 1:
                material = get_material(rec.material_id)
                point = rec.position
                normal = rec.normal

                radiance += weight * local_illumination(ray_origin, point, normal, material)

                reflect_share = material.albedo.y
                refract_share = material.albedo.z
                eta = 1.0 / material.refraction_index
                if is_inside_any_sphere(ray_origin) == 1:
                    reflect_share = 0.0
                    refract_share = 1.0
                    eta = material.refraction_index

                # A child with no budget left would contribute nothing
                if budget > 1:
                    # Refracted child is pushed first so the reflected one is traced first
                    ok, refracted = refract(ray_direction, normal, eta)
                    if ok == 1 and refract_share != 0.0 and sp < STACK_SIZE:
                        refract_dir = normalize(refracted)
                        _push(
                            slot,
                            sp,
                            _offset_ray_origin(point, normal, refract_dir),
                            refract_dir,
                            weight * refract_share,
                            budget - 1,
                        )
                        sp += 1

                    if reflect_share != 0.0 and sp < STACK_SIZE:
                        reflect_dir = normalize(reflect(ray_direction, normal))
                        _push(
                            slot,
                            sp,
                            _offset_ray_origin(point, normal, reflect_dir),
                            reflect_dir,
                            weight * reflect_share,
                            budget - 1,
                        )
                        sp += 1

    return radiance


# =============================================================================
# Rendering Kernels
# =============================================================================


@ti.kernel
def _render_full_row(row: ti.i32, width: ti.i32, height: ti.i32, depth: ti.i32):
    """Trace every pixel of one image row, one work stack per column."""
    for i in range(width):
        ray = get_ray(i, row, width, height)
        _color_buffer[i, row] = trace(ray.origin, ray.direction, depth, i)


@ti.kernel
def _render_depth(width: ti.i32, height: ti.i32):
    """Store the nearest hit distance per pixel, DEPTH_MISS_DISTANCE on a miss."""
    for i, j in ti.ndrange(width, height):
        ray = get_ray(i, j, width, height)
        rec = find_nearest(ray.origin, ray.direction)
        distance = DEPTH_MISS_DISTANCE
        if rec.hit == 1:
            distance = rec.distance
        _color_buffer[i, j] = vec3(distance, distance, distance)


@ti.kernel
def _render_normal(width: ti.i32, height: ti.i32):
    """Store the shading normal per pixel, zero on a miss."""
    for i, j in ti.ndrange(width, height):
        ray = get_ray(i, j, width, height)
        rec = find_nearest(ray.origin, ray.direction)
        normal = vec3(0.0, 0.0, 0.0)
        if rec.hit == 1:
            normal = rec.normal
        _color_buffer[i, j] = normal


@ti.kernel
def _trace_single(
    ox: ti.f32,
    oy: ti.f32,
    oz: ti.f32,
    dx: ti.f32,
    dy: ti.f32,
    dz: ti.f32,
    depth: ti.i32,
) -> vec3:
    """Trace one ray using work stack 0."""
    return trace(vec3(ox, oy, oz), vec3(dx, dy, dz), depth, 0)


# =============================================================================
# Public Rendering API
# =============================================================================


def trace_ray(
    origin: Sequence[float],
    direction: Sequence[float],
    depth: int,
) -> tuple[float, float, float]:
    """Trace a single ray against the uploaded scene.

    This is a Python-callable entry point for testing and debugging. For
    images, use render_full() which processes pixels in parallel.

    Args:
        origin: Ray origin (x, y, z).
        direction: Unit ray direction (x, y, z).
        depth: Recursion budget.

    Returns:
        Tuple of (R, G, B) radiance values.

    Raises:
        ValueError: If depth is out of range.
    """
    _check_depth(depth)
    color = _trace_single(
        float(origin[0]),
        float(origin[1]),
        float(origin[2]),
        float(direction[0]),
        float(direction[1]),
        float(direction[2]),
        depth,
    )
    return (float(color[0]), float(color[1]), float(color[2]))


def iter_render_full(depth: int) -> Generator[tuple[int, int], None, None]:
    """Render full light transport row by row.

    Rows are launched one at a time; pixels within a row run in parallel.

    Args:
        depth: Recursion budget per primary ray.

    Yields:
        Tuple of (rows_done, total_rows) after each row.

    Raises:
        RuntimeError: If render target has not been set up.
        ValueError: If depth is out of range.
    """
    _check_render_target_initialized()
    _check_depth(depth)

    width, height = get_image_dimensions()
    logger.debug("Tracing %dx%d pixels with depth %d", width, height, depth)

    for row in range(height):
        _render_full_row(row, width, height, depth)
        yield (row + 1, height)


def render_full(depth: int, callback: ProgressCallback | None = None) -> None:
    """Render full light transport into the radiance buffer.

    Args:
        depth: Recursion budget per primary ray.
        callback: Optional callback called after each row with
            (rows_done, total_rows).

    Raises:
        RuntimeError: If render target has not been set up.
        ValueError: If depth is out of range.
    """
    for done, total in iter_render_full(depth):
        if callback is not None:
            callback(done, total)


def render_depth() -> None:
    """Render per-pixel hit distances into the radiance buffer.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()
    width, height = get_image_dimensions()
    _render_depth(width, height)


def render_normal() -> None:
    """Render per-pixel shading normals into the radiance buffer.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()
    width, height = get_image_dimensions()
    _render_normal(width, height)


def get_buffer_numpy() -> npt.NDArray[np.float32]:
    """Get the active region of the radiance buffer as a NumPy array.

    Values are raw (not tone mapped or clamped).

    Returns:
        NumPy array of shape (height, width, 3), row 0 at the top.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()

    full_image = _color_buffer.to_numpy()
    image = full_image[:width, :height, :]

    # Transpose from (width, height, 3) to (height, width, 3)
    return np.ascontiguousarray(np.transpose(image, (1, 0, 2))).astype(np.float32)
