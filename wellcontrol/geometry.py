"""
Wellbore geometry: drill-string and annulus sections, area profiles, MD→TVD.

This module describes the two flow compartments of a circulating well:
- String: the bore of the drill string, from surface to the bit
- Annulus: the gap between the string OD and the hole/casing ID

Cross-sectional area is piecewise constant in measured depth, so converting a
volume to a depth interval walks the profile interval by interval:

    V(a, b) = Σ A_i * (min(b, z_{i+1}) - max(a, z_i))

Depths are measured depth (MD) unless named ``tvd``. All values SI.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence, Tuple, Union

import numpy as np

from .config import DEFAULT_CONFIG


ArrayLike = Union[float, Sequence[float], np.ndarray]


class Side(str, Enum):
    """Flow compartment of the well."""
    STRING = "string"
    ANNULUS = "annulus"


class ConduitKind(str, Enum):
    """Flow geometry used by the friction correlations."""
    PIPE = "pipe"
    ANNULUS = "annulus"


@dataclass(frozen=True)
class Conduit:
    """
    Local flow geometry at one depth.

    Attributes
    ----------
    kind : ConduitKind
        Circular pipe or concentric annulus (slot approximation)
    area : float
        Flow area [m²]
    hydraulic_diameter : float
        D for pipe flow, Dhole - Dpipe for annular flow [m]
    roughness : float
        Absolute wall roughness [m]
    """
    kind: ConduitKind
    area: float
    hydraulic_diameter: float
    roughness: float = DEFAULT_CONFIG.DEFAULT_ROUGHNESS

    @property
    def is_degenerate(self) -> bool:
        return self.area <= 0.0 or self.hydraulic_diameter <= 0.0


@dataclass(frozen=True)
class StringSection:
    """
    One drill-string section (drill pipe, HWDP, collars...).

    Attributes
    ----------
    name : str
        Section label
    top_md : float
        Top measured depth [m]
    length : float
        Section length [m]
    inner_diameter : float
        Bore diameter [m]
    outer_diameter : float
        Body outer diameter [m]
    roughness : float
        Inner wall roughness [m]
    """
    name: str
    top_md: float
    length: float
    inner_diameter: float
    outer_diameter: float
    roughness: float = DEFAULT_CONFIG.DEFAULT_ROUGHNESS

    def __post_init__(self):
        if self.top_md < 0:
            raise ValueError(f"String section '{self.name}': top_md must be >= 0 (got {self.top_md}).")
        if self.length <= 0:
            raise ValueError(f"String section '{self.name}': length must be positive (got {self.length}).")
        if self.inner_diameter <= 0:
            raise ValueError(f"String section '{self.name}': inner_diameter must be positive.")
        if self.outer_diameter <= self.inner_diameter:
            raise ValueError(
                f"String section '{self.name}': outer_diameter ({self.outer_diameter}) "
                f"must be > inner_diameter ({self.inner_diameter})."
            )
        if self.roughness < 0:
            raise ValueError(f"String section '{self.name}': roughness must be non-negative.")

    @property
    def bottom_md(self) -> float:
        return self.top_md + self.length

    @property
    def capacity_per_m(self) -> float:
        """Internal capacity [m³/m] = π/4 ID²."""
        return np.pi * self.inner_diameter ** 2 / 4.0

    @property
    def displacement_per_m(self) -> float:
        """Open-end steel displacement [m³/m] = π/4 (OD² - ID²)."""
        return np.pi * (self.outer_diameter ** 2 - self.inner_diameter ** 2) / 4.0

    @property
    def volume(self) -> float:
        return self.capacity_per_m * self.length


@dataclass(frozen=True)
class AnnulusSection:
    """
    One annulus section (cased hole or open hole).

    Attributes
    ----------
    name : str
        Section label
    top_md : float
        Top measured depth [m]
    length : float
        Section length [m]
    inner_diameter : float
        Casing/wellbore ID, the outer wall of the annulus [m]
    outer_diameter : float
        String OD in this section, the inner wall of the annulus [m]
    roughness : float
        Wall roughness [m]
    """
    name: str
    top_md: float
    length: float
    inner_diameter: float
    outer_diameter: float = 0.0
    roughness: float = DEFAULT_CONFIG.DEFAULT_ROUGHNESS

    def __post_init__(self):
        if self.top_md < 0:
            raise ValueError(f"Annulus section '{self.name}': top_md must be >= 0 (got {self.top_md}).")
        if self.length <= 0:
            raise ValueError(f"Annulus section '{self.name}': length must be positive (got {self.length}).")
        if self.outer_diameter < 0:
            raise ValueError(f"Annulus section '{self.name}': outer_diameter must be non-negative.")
        if self.inner_diameter <= self.outer_diameter:
            raise ValueError(
                f"Annulus section '{self.name}': inner_diameter ({self.inner_diameter}) "
                f"must be > outer_diameter ({self.outer_diameter})."
            )
        if self.roughness < 0:
            raise ValueError(f"Annulus section '{self.name}': roughness must be non-negative.")

    @property
    def bottom_md(self) -> float:
        return self.top_md + self.length

    @property
    def flow_area(self) -> float:
        """Concentric annulus area [m²] = π/4 (ID² - OD²)."""
        return np.pi * (self.inner_diameter ** 2 - self.outer_diameter ** 2) / 4.0

    @property
    def wetted_perimeter(self) -> float:
        return np.pi * (self.inner_diameter + self.outer_diameter)

    @property
    def hydraulic_diameter(self) -> float:
        """Equivalent diameter De = ID - OD [m]."""
        return self.inner_diameter - self.outer_diameter

    @property
    def volume(self) -> float:
        return self.flow_area * self.length


class AreaProfile:
    """
    Piecewise-constant cross-sectional area over measured depth.

    Parameters
    ----------
    breaks : array_like
        Increasing breakpoints z_0 < z_1 < ... < z_n [m]
    areas : array_like
        Area of each interval [z_i, z_{i+1}] [m²], length n
    """

    def __init__(self, breaks: ArrayLike, areas: ArrayLike):
        breaks = np.asarray(breaks, dtype=float)
        areas = np.asarray(areas, dtype=float)
        if breaks.ndim != 1 or len(breaks) < 1:
            raise ValueError("breaks must be a non-empty 1D array")
        if len(areas) != max(len(breaks) - 1, 0):
            raise ValueError("areas must have one entry per interval")
        if np.any(np.diff(breaks) <= 0):
            raise ValueError("breaks must be strictly increasing")

        self.breaks = breaks
        self.areas = np.maximum(areas, 0.0)
        self._cumulative = np.concatenate([[0.0], np.cumsum(self.areas * np.diff(breaks))])

    @property
    def top(self) -> float:
        return float(self.breaks[0])

    @property
    def bottom(self) -> float:
        return float(self.breaks[-1])

    @property
    def total_volume(self) -> float:
        return float(self._cumulative[-1])

    def _interval(self, md: float) -> int:
        i = int(np.searchsorted(self.breaks, md, side="right")) - 1
        return min(max(i, 0), len(self.areas) - 1)

    def area_at(self, md: float) -> float:
        """Area of the interval containing ``md`` (0 outside the profile)."""
        if not self.areas.size or md < self.top or md > self.bottom:
            return 0.0
        return float(self.areas[self._interval(md)])

    def volume_to(self, md: float) -> float:
        """Volume from the profile top down to ``md`` [m³]."""
        if not self.areas.size:
            return 0.0
        md = min(max(md, self.top), self.bottom)
        i = self._interval(md)
        return float(self._cumulative[i] + self.areas[i] * (md - self.breaks[i]))

    def volume_between(self, top: float, bottom: float) -> float:
        """Volume between two depths [m³]; zero when ``bottom <= top``."""
        if bottom <= top:
            return 0.0
        return self.volume_to(bottom) - self.volume_to(top)

    def depth_below(self, start: float, volume: float) -> float:
        """
        Grow an interval downward from ``start`` until it holds ``volume``.

        Steps across area changes one interval at a time. Clamped at the
        profile bottom when the volume does not fit.

        Returns
        -------
        float
            Bottom depth of the interval [m]
        """
        md = min(max(start, self.top), self.bottom)
        remaining = volume
        if remaining <= 0 or not self.areas.size:
            return md

        i = int(np.searchsorted(self.breaks, md, side="right")) - 1
        while 0 <= i < len(self.areas):
            end = self.breaks[i + 1]
            area = self.areas[i]
            fits = area * (end - md)
            if fits >= remaining:
                return float(md + remaining / area)
            remaining -= fits
            md = end
            i += 1
        return self.bottom

    def depth_above(self, start: float, volume: float) -> float:
        """
        Grow an interval upward from ``start`` until it holds ``volume``.

        Returns
        -------
        float
            Top depth of the interval [m], clamped at the profile top
        """
        md = min(max(start, self.top), self.bottom)
        remaining = volume
        if remaining <= 0 or not self.areas.size:
            return md

        i = int(np.searchsorted(self.breaks, md, side="left")) - 1
        while 0 <= i < len(self.areas):
            begin = self.breaks[i]
            area = self.areas[i]
            fits = area * (md - begin)
            if fits >= remaining:
                return float(md - remaining / area)
            remaining -= fits
            md = begin
            i -= 1
        return self.top

    def breakpoints(self, top: float, bottom: float) -> np.ndarray:
        """Depths in [top, bottom] where the area may change, ends included."""
        inner = self.breaks[(self.breaks > top) & (self.breaks < bottom)]
        return np.concatenate([[top], inner, [bottom]])


def _section_at(sections, md: float):
    for sec in sections:
        if sec.top_md <= md <= sec.bottom_md:
            return sec
    return None


def _profile_breaks(bottom: float, sections_lists) -> np.ndarray:
    points = {0.0, bottom}
    for sections in sections_lists:
        for sec in sections:
            for z in (sec.top_md, sec.bottom_md):
                if 0.0 < z < bottom:
                    points.add(float(z))
    return np.array(sorted(points))


class WellGeometry:
    """
    String and annulus geometry of one well.

    Parameters
    ----------
    string_sections : sequence of StringSection
        Drill-string sections, any order
    annulus_sections : sequence of AnnulusSection
        Annulus sections, any order

    Notes
    -----
    - The string compartment spans [0, bit_md].
    - The annulus compartment spans [0, annulus_bottom_md]; the string
      discharges into it at ``connection_md = min(bit_md, annulus_bottom_md)``.
    - Pipe OD inside the string's reach comes from the string section at that
      depth (falling back to the annulus section's own OD); below the bit the
      annulus is open hole.
    """

    def __init__(
        self,
        string_sections: Sequence[StringSection] = (),
        annulus_sections: Sequence[AnnulusSection] = (),
    ):
        self.string_sections: Tuple[StringSection, ...] = tuple(
            sorted(string_sections, key=lambda s: s.top_md)
        )
        self.annulus_sections: Tuple[AnnulusSection, ...] = tuple(
            sorted(annulus_sections, key=lambda s: s.top_md)
        )

        self.string_bottom_md = max((s.bottom_md for s in self.string_sections), default=0.0)
        self.annulus_bottom_md = max((s.bottom_md for s in self.annulus_sections), default=0.0)

        self.string_profile = self._build_string_profile()
        self.annulus_profile = self._build_annulus_profile()

    def __repr__(self):
        return (
            f"WellGeometry(bit_md={self.bit_md:.1f} m, "
            f"string={self.string_capacity:.3f} m³, annulus={self.annulus_capacity:.3f} m³)"
        )

    # -------------------------------------------------------------------------
    # Depth markers
    # -------------------------------------------------------------------------
    @property
    def bit_md(self) -> float:
        """Bit depth [m]; the annulus bottom when there is no string."""
        if self.string_sections:
            return self.string_bottom_md
        return self.annulus_bottom_md

    @property
    def connection_md(self) -> float:
        """Depth where the string discharges into the annulus [m]."""
        return min(self.bit_md, self.annulus_bottom_md)

    # -------------------------------------------------------------------------
    # Per-depth lookups
    # -------------------------------------------------------------------------
    def pipe_id(self, md: float) -> float:
        sec = _section_at(self.string_sections, md)
        return sec.inner_diameter if sec is not None else 0.0

    def pipe_od(self, md: float) -> float:
        if self.string_sections and md > self.string_bottom_md:
            return 0.0
        sec = _section_at(self.string_sections, md)
        if sec is not None:
            return sec.outer_diameter
        ann = _section_at(self.annulus_sections, md)
        return ann.outer_diameter if ann is not None else 0.0

    def hole_id(self, md: float) -> float:
        sec = _section_at(self.annulus_sections, md)
        return sec.inner_diameter if sec is not None else 0.0

    def string_area(self, md: float) -> float:
        return np.pi * self.pipe_id(md) ** 2 / 4.0

    def annulus_area(self, md: float) -> float:
        dh = self.hole_id(md)
        dp = min(self.pipe_od(md), dh)
        return max(0.0, np.pi * (dh ** 2 - dp ** 2) / 4.0)

    def string_roughness(self, md: float) -> float:
        sec = _section_at(self.string_sections, md)
        return sec.roughness if sec is not None else DEFAULT_CONFIG.DEFAULT_ROUGHNESS

    def annulus_roughness(self, md: float) -> float:
        sec = _section_at(self.annulus_sections, md)
        return sec.roughness if sec is not None else DEFAULT_CONFIG.DEFAULT_ROUGHNESS

    def conduit(self, side: Side, md: float) -> Conduit:
        """Local flow geometry of a compartment at ``md``."""
        if Side(side) is Side.STRING:
            d = self.pipe_id(md)
            return Conduit(ConduitKind.PIPE, np.pi * d ** 2 / 4.0, d, self.string_roughness(md))
        dh = self.hole_id(md)
        dp = min(self.pipe_od(md), dh)
        return Conduit(
            ConduitKind.ANNULUS,
            self.annulus_area(md),
            max(dh - dp, 0.0),
            self.annulus_roughness(md),
        )

    # -------------------------------------------------------------------------
    # Volumes
    # -------------------------------------------------------------------------
    def profile(self, side: Side) -> AreaProfile:
        return self.string_profile if Side(side) is Side.STRING else self.annulus_profile

    @property
    def string_capacity(self) -> float:
        """String internal volume, surface to bit [m³]."""
        return self.string_profile.total_volume

    @property
    def annulus_capacity(self) -> float:
        """Annulus volume above the connection point [m³]."""
        return self.annulus_profile.volume_between(0.0, self.connection_md)

    def volume_in_string(self, top: float, bottom: float) -> float:
        return self.string_profile.volume_between(top, bottom)

    def volume_in_annulus(self, top: float, bottom: float) -> float:
        return self.annulus_profile.volume_between(top, bottom)

    def length_for_string_volume(self, start: float, volume: float) -> float:
        """Length below ``start`` holding ``volume`` of string capacity [m]."""
        return self.string_profile.depth_below(start, volume) - start

    def length_for_annulus_volume_from_bottom(self, start: float, volume: float) -> float:
        """Length above ``start`` holding ``volume`` of annulus capacity [m]."""
        return start - self.annulus_profile.depth_above(start, volume)

    def breakpoints(self, side: Side, top: float, bottom: float) -> np.ndarray:
        """Geometry breakpoints of a compartment within [top, bottom]."""
        return self.profile(side).breakpoints(top, bottom)

    # -------------------------------------------------------------------------
    # Profile construction
    # -------------------------------------------------------------------------
    def _build_string_profile(self) -> AreaProfile:
        bottom = self.string_bottom_md
        if bottom <= 0:
            return AreaProfile([0.0], [])
        breaks = _profile_breaks(bottom, [self.string_sections])
        mids = 0.5 * (breaks[:-1] + breaks[1:])
        return AreaProfile(breaks, [self.string_area(z) for z in mids])

    def _build_annulus_profile(self) -> AreaProfile:
        bottom = self.annulus_bottom_md
        if bottom <= 0:
            return AreaProfile([0.0], [])
        breaks = _profile_breaks(bottom, [self.annulus_sections, self.string_sections])
        mids = 0.5 * (breaks[:-1] + breaks[1:])
        return AreaProfile(breaks, [self.annulus_area(z) for z in mids])


class TvdSampler:
    """
    Measured depth to true vertical depth mapping from survey stations.

    Stations are sorted and de-duplicated by MD. Between stations TVD is
    linearly interpolated; above the first station the profile is anchored at
    (0, 0); below the last station the last interval's slope is extended.
    An empty survey is a vertical well (TVD = MD).

    Parameters
    ----------
    md : array_like, optional
        Station measured depths [m]
    tvd : array_like, optional
        Station true vertical depths [m]
    """

    def __init__(self, md: Optional[ArrayLike] = None, tvd: Optional[ArrayLike] = None):
        md_ray = np.atleast_1d(np.asarray(md if md is not None else [], dtype=float))
        tvd_ray = np.atleast_1d(np.asarray(tvd if tvd is not None else [], dtype=float))

        if len(md_ray) != len(tvd_ray):
            raise ValueError("Lists for Measured Depth and Vertical Depth need to be the same length")
        if not (np.all(np.isfinite(md_ray)) and np.all(np.isfinite(tvd_ray))):
            raise ValueError("Survey stations must be finite")

        order = np.argsort(md_ray, kind="stable")
        md_ray, tvd_ray = md_ray[order], tvd_ray[order]
        keep = np.concatenate([[True], np.diff(md_ray) > 0]) if len(md_ray) else np.array([], bool)
        md_ray, tvd_ray = md_ray[keep], tvd_ray[keep]

        if len(md_ray) and md_ray[0] > 0:
            md_ray = np.concatenate([[0.0], md_ray])
            tvd_ray = np.concatenate([[0.0], tvd_ray])

        self.md_ray = md_ray
        self.tvd_ray = tvd_ray

    def __repr__(self):
        if self.is_vertical:
            return "TvdSampler(vertical)"
        return f"TvdSampler({len(self.md_ray)} stations, TD {self.md_ray[-1]:.0f} m MD / {self.tvd_ray[-1]:.0f} m TVD)"

    @classmethod
    def from_stations(cls, stations) -> "TvdSampler":
        """Build from (md, tvd) pairs or dicts with 'md' and 'tvd' keys; missing tvd means vertical."""
        md_list: List[float] = []
        tvd_list: List[float] = []
        for st in stations:
            if isinstance(st, dict):
                md_val = float(st["md"])
                tvd_val = st.get("tvd")
            else:
                md_val, tvd_val = float(st[0]), st[1]
            md_list.append(md_val)
            tvd_list.append(md_val if tvd_val is None else float(tvd_val))
        return cls(md_list, tvd_list)

    @property
    def is_vertical(self) -> bool:
        return len(self.md_ray) < 2

    def tvd(self, md: ArrayLike) -> Union[float, np.ndarray]:
        """True vertical depth at ``md`` [m]."""
        scalar = np.ndim(md) == 0
        md_arr = np.asarray(md, dtype=float)

        if self.is_vertical:
            out = md_arr.copy()
        else:
            out = np.interp(md_arr, self.md_ray, self.tvd_ray)
            slope = (self.tvd_ray[-1] - self.tvd_ray[-2]) / (self.md_ray[-1] - self.md_ray[-2])
            beyond = md_arr > self.md_ray[-1]
            out = np.where(beyond, self.tvd_ray[-1] + slope * (md_arr - self.md_ray[-1]), out)

        return float(out) if scalar else out

    __call__ = tvd
