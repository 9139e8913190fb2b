import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Tuple

from .errors import MeshLoadError
from .mathlib import Vec2, Vec3, ZERO

logger = logging.getLogger(__name__)

DEFAULT_NORMAL = Vec3(0.0, 0.0, 1.0)
DEFAULT_UV = Vec2(0.0, 0.0)


# ============================================================
#  Mesh storage
# ============================================================

@dataclass
class Face:
    """
    Single triangle face, indices into:
      - v:  vertex positions
      - vt: texture coords
      - vn: vertex normals

    Indices are 0-based; -1 marks an absent attribute.
    """
    v: Tuple[int, int, int]
    vt: Tuple[int, int, int] = (-1, -1, -1)
    vn: Tuple[int, int, int] = (-1, -1, -1)


@dataclass
class Mesh:
    """
    Triangle mesh stored as flat attribute arrays plus index triples.

    Each face corner indexes positions, texcoords and normals
    independently, so shared vertices are stored once.
    """
    verts: List[Vec3] = field(default_factory=list)
    uvs: List[Vec2] = field(default_factory=list)
    normals: List[Vec3] = field(default_factory=list)
    faces: List[Face] = field(default_factory=list)
    # (i, j) position index pairs drawn as an outline over the shaded faces
    edges: List[Tuple[int, int]] = field(default_factory=list)

    def vertex(self, idx: int) -> Vec3:
        """Return position by index, or the origin if missing."""
        if idx < 0 or idx >= len(self.verts):
            return ZERO
        return self.verts[idx]

    def texcoord(self, idx: int) -> Vec2:
        """Return UV by index, or (0,0) if missing."""
        if idx < 0 or idx >= len(self.uvs):
            return DEFAULT_UV
        return self.uvs[idx]

    def normal(self, idx: int) -> Vec3:
        """Return normal by index, or default (0,0,1) if missing."""
        if idx < 0 or idx >= len(self.normals):
            return DEFAULT_NORMAL
        return self.normals[idx]

    def generate_normals(self) -> bool:
        """
        Synthesize smooth per-vertex normals when the mesh has none.

        Every face adds its unit normal to its three corners; the sums are
        renormalized and each face's normal indices are pointed at the
        position indices. Returns False if normals already existed.
        """
        if self.normals:
            return False

        acc = [ZERO] * len(self.verts)
        for face in self.faces:
            i0, i1, i2 = face.v
            v0, v1, v2 = self.vertex(i0), self.vertex(i1), self.vertex(i2)
            n = (v1 - v0).cross(v2 - v0).normalize()
            for i in face.v:
                if 0 <= i < len(acc):
                    acc[i] = acc[i] + n

        self.normals = [n.normalize() for n in acc]
        for face in self.faces:
            face.vn = face.v
        return True

    def bounds(self) -> Tuple[Vec3, Vec3]:
        """Axis-aligned (min, max) corners; both zero for an empty mesh."""
        if not self.verts:
            return ZERO, ZERO
        xs = [v.x for v in self.verts]
        ys = [v.y for v in self.verts]
        zs = [v.z for v in self.verts]
        return Vec3(min(xs), min(ys), min(zs)), Vec3(max(xs), max(ys), max(zs))


# ============================================================
#  OBJ loader
# ============================================================

def _corner(token: str) -> Tuple[int, int, int]:
    """Parse `v`, `v/vt`, `v//vn` or `v/vt/vn` into 0-based indices."""
    comps = token.split("/")
    vi = int(comps[0]) - 1
    vti = int(comps[1]) - 1 if len(comps) > 1 and comps[1] else -1
    vni = int(comps[2]) - 1 if len(comps) > 2 and comps[2] else -1
    return vi, vti, vni


def parse_obj(lines: Iterable[str], source: str = "<obj>") -> Mesh:
    """
    Minimal OBJ parser for triangular meshes.

    Supported:
      v  x y z
      vt u v
      vn x y z
      f  corner corner corner ...

    Faces with more than three corners keep the first three. Anything else
    (comments, groups, materials) is ignored.
    """
    mesh = Mesh()
    for lineno, line in enumerate(lines, start=1):
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        parts = line.split()
        try:
            if parts[0] == "v" and len(parts) >= 4:
                mesh.verts.append(Vec3(float(parts[1]), float(parts[2]), float(parts[3])))
            elif parts[0] == "vt" and len(parts) >= 3:
                mesh.uvs.append(Vec2(float(parts[1]), float(parts[2])))
            elif parts[0] == "vn" and len(parts) >= 4:
                mesh.normals.append(Vec3(float(parts[1]), float(parts[2]), float(parts[3])))
            elif parts[0] == "f":
                if len(parts) < 4:
                    logger.debug("%s:%d: skipping face with %d corners", source, lineno, len(parts) - 1)
                    continue
                corners = [_corner(tok) for tok in parts[1:4]]
                mesh.faces.append(Face(
                    v=tuple(c[0] for c in corners),
                    vt=tuple(c[1] for c in corners),
                    vn=tuple(c[2] for c in corners),
                ))
        except ValueError as exc:
            raise MeshLoadError(f"{source}:{lineno}: malformed '{parts[0]}' record: {line!r}") from exc
    return mesh


def load_obj(path) -> Mesh:
    """Read an OBJ file into a Mesh; raises MeshLoadError on failure."""
    try:
        with open(path, "r", encoding="utf-8", errors="ignore") as f:
            mesh = parse_obj(f, source=str(path))
    except OSError as exc:
        raise MeshLoadError(f"cannot open mesh file {path}: {exc}") from exc
    logger.info("Loaded model %s: %d vertices, %d faces", path, len(mesh.verts), len(mesh.faces))
    return mesh
