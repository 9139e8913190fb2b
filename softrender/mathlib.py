import math
from dataclasses import dataclass
from typing import List, Optional, Union

import numpy as np


# ============================================================
#  Math primitives
# ============================================================

@dataclass(frozen=True)
class Vec2:
    """
    2D vector for texture coordinates (u, v) and screen positions.

    Immutable: every operation returns a new object.
    """
    x: float
    y: float

    def __add__(self, o): return Vec2(self.x + o.x, self.y + o.y)
    def __sub__(self, o): return Vec2(self.x - o.x, self.y - o.y)
    def __mul__(self, k: float): return Vec2(self.x * k, self.y * k)


@dataclass(frozen=True)
class Vec3:
    """
    3D vector for positions, directions and normals.

    Used in:
      - mesh positions and normals
      - world-space positions produced by the vertex stage
      - NDC / screen-space corners handed to the rasterizer
      - light directions and linear RGB accumulation in the fragment stage
    """
    x: float
    y: float
    z: float

    def __add__(self, o): return Vec3(self.x + o.x, self.y + o.y, self.z + o.z)
    def __sub__(self, o): return Vec3(self.x - o.x, self.y - o.y, self.z - o.z)
    def __neg__(self): return Vec3(-self.x, -self.y, -self.z)

    def __mul__(self, k: Union[float, "Vec3"]) -> "Vec3":
        """Scalar multiply, or component-wise multiply when given a Vec3."""
        if isinstance(k, Vec3):
            return Vec3(self.x * k.x, self.y * k.y, self.z * k.z)
        return Vec3(self.x * k, self.y * k, self.z * k)

    __rmul__ = __mul__

    def __truediv__(self, k: float) -> "Vec3":
        return Vec3(self.x / k, self.y / k, self.z / k)

    def dot(self, o) -> float:
        """Dot product (scalar product)."""
        return self.x * o.x + self.y * o.y + self.z * o.z

    def cross(self, o):
        """Cross product (vector product)."""
        return Vec3(
            self.y * o.z - self.z * o.y,
            self.z * o.x - self.x * o.z,
            self.x * o.y - self.y * o.x
        )

    def norm(self) -> float:
        """Euclidean length."""
        return math.sqrt(self.dot(self))

    def normalize(self):
        """Return normalized vector (length=1), or the zero vector for zero input."""
        n = self.norm()
        if n <= 1e-12:
            return Vec3(0.0, 0.0, 0.0)
        return self * (1.0 / n)


ZERO = Vec3(0.0, 0.0, 0.0)


class Mat4:
    """
    4x4 matrix (row-major), identity unless data is given.

    We use Mat4 for:
      - Model matrix (object -> world)
      - View matrix (world -> camera, see look_at)
      - Projection matrix (camera -> clip)

    Composition:
      - A @ B applies B first, then A
    """
    def __init__(self, m: Optional[List[List[float]]] = None):
        if m is None:
            m = [[1.0 if i == j else 0.0 for j in range(4)] for i in range(4)]
        self.m = m

    @staticmethod
    def identity():
        """Create identity matrix."""
        return Mat4()

    def __matmul__(self, o: "Mat4") -> "Mat4":
        """Matrix multiplication (Mat4 @ Mat4)."""
        r = Mat4()
        for i in range(4):
            for j in range(4):
                s = 0.0
                for k in range(4):
                    s += self.m[i][k] * o.m[k][j]
                r.m[i][j] = s
        return r

    def __eq__(self, o):
        if not isinstance(o, Mat4):
            return NotImplemented
        return self.m == o.m

    def __repr__(self):
        return f"Mat4({self.m!r})"

    def transform(self, v: Vec3, w: float = 1.0) -> Vec3:
        """
        Apply the matrix to the homogeneous point (v, w).

        w=1 for points, w=0 for directions and normals (skips translation).
        The result is divided by the resulting w when it is finite, non-zero
        and not exactly 1, so projection matrices land in NDC directly.
        """
        m = self.m
        x = m[0][0]*v.x + m[0][1]*v.y + m[0][2]*v.z + m[0][3]*w
        y = m[1][0]*v.x + m[1][1]*v.y + m[1][2]*v.z + m[1][3]*w
        z = m[2][0]*v.x + m[2][1]*v.y + m[2][2]*v.z + m[2][3]*w
        rw = m[3][0]*v.x + m[3][1]*v.y + m[3][2]*v.z + m[3][3]*w
        if rw != 0.0 and rw != 1.0 and math.isfinite(rw):
            return Vec3(x / rw, y / rw, z / rw)
        return Vec3(x, y, z)

    def inverse(self) -> "Mat4":
        """Inverse matrix; raises numpy.linalg.LinAlgError when singular."""
        return Mat4(np.linalg.inv(np.array(self.m, dtype=np.float64)).tolist())


# ============================================================
#  3D transforms
# ============================================================

def translate(tx, ty, tz) -> Mat4:
    """
    Translation matrix.

    Applies: (x, y, z) -> (x + tx, y + ty, z + tz)
    """
    m = Mat4.identity()
    m.m[0][3] = tx
    m.m[1][3] = ty
    m.m[2][3] = tz
    return m

def scale(sx, sy, sz) -> Mat4:
    """
    Scaling matrix.

    Applies: (x, y, z) -> (sx*x, sy*y, sz*z)
    """
    m = Mat4.identity()
    m.m[0][0] = sx
    m.m[1][1] = sy
    m.m[2][2] = sz
    return m

def rotate_x(a) -> Mat4:
    """Rotation around X axis by angle a (radians)."""
    c, s = math.cos(a), math.sin(a)
    m = Mat4.identity()
    m.m[1][1] = c
    m.m[1][2] = -s
    m.m[2][1] = s
    m.m[2][2] = c
    return m

def rotate_y(a) -> Mat4:
    """Rotation around Y axis by angle a (radians)."""
    c, s = math.cos(a), math.sin(a)
    m = Mat4.identity()
    m.m[0][0] = c
    m.m[0][2] = s
    m.m[2][0] = -s
    m.m[2][2] = c
    return m

def rotate_z(a) -> Mat4:
    """Rotation around Z axis by angle a (radians)."""
    c, s = math.cos(a), math.sin(a)
    m = Mat4.identity()
    m.m[0][0] = c
    m.m[0][1] = -s
    m.m[1][0] = s
    m.m[1][1] = c
    return m


# ============================================================
#  Camera and projection
# ============================================================

def perspective(fov_y, aspect, z_near, z_far) -> Mat4:
    """
    Perspective projection matrix.

    Parameters:
      fov_y  - full vertical field of view in radians, 0 < fov_y < pi
      aspect - width / height
      z_near - near plane distance (positive)
      z_far  - far plane distance (positive)

    Notes:
      - Camera looks towards -Z in view space.
      - Clip-space w = -z_view; after the divide the near plane maps to
        z=-1 and the far plane to z=+1.
    """
    if not 0.0 < fov_y < math.pi:
        raise ValueError(f"fov_y must be in (0, pi), got {fov_y}")
    if aspect <= 0.0:
        raise ValueError(f"aspect must be positive, got {aspect}")
    if z_near == z_far:
        raise ValueError("z_near and z_far must differ")
    f = 1.0 / math.tan(fov_y / 2.0)
    m = Mat4()
    m.m[0][0] = f / aspect
    m.m[1][1] = f
    m.m[2][2] = (z_far + z_near) / (z_near - z_far)
    m.m[2][3] = (2.0 * z_far * z_near) / (z_near - z_far)
    m.m[3][2] = -1.0
    m.m[3][3] = 0.0
    return m

def look_at(eye: Vec3, target: Vec3, up: Vec3) -> Mat4:
    """
    View matrix for a camera at `eye` looking at `target`.

    Builds the orthonormal basis
      forward = normalize(target - eye)
      right   = normalize(forward x up)
      true_up = right x forward
    and returns the inverse camera transform (world -> view).
    """
    forward = (target - eye).normalize()
    right = forward.cross(up).normalize()
    if right == ZERO:
        raise ValueError("up vector must not be parallel to the view direction")
    true_up = right.cross(forward)

    m = Mat4()
    m.m[0] = [right.x, right.y, right.z, -right.dot(eye)]
    m.m[1] = [true_up.x, true_up.y, true_up.z, -true_up.dot(eye)]
    m.m[2] = [-forward.x, -forward.y, -forward.z, forward.dot(eye)]
    m.m[3] = [0.0, 0.0, 0.0, 1.0]
    return m
