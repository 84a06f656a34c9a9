"""
Fluid stack: depth-ordered fluid columns in the string and the annulus.

Inside the engine a compartment is held as an ordered list of volume parcels.
The string list runs surface to bit; the annulus list runs from the
connection point (bit) up to surface. Pumping inserts a parcel at the front of
a list and whatever no longer fits leaves from the back:

    string:   surface → [p0, p1, ..., pn] → bit       (pn leaves first)
    annulus:  bit     → [q0, q1, ..., qm] → surface   (qm leaves first)

Parcels are converted to depth segments only when a view is requested, so the
volume bookkeeping never depends on area-profile round-off.
"""

from dataclasses import dataclass, replace
from typing import Dict, List, Optional, Sequence, Tuple

from .config import DEFAULT_CONFIG
from .diagnostics import Diagnostic
from .geometry import Side, WellGeometry
from .rheology import Fluid

AIR_COLOR = "#f0f8ff"


@dataclass(frozen=True)
class FluidSegment:
    """
    A contiguous depth interval holding one fluid.

    Attributes
    ----------
    top_md, bottom_md : float
        Interval bounds [m], top_md <= bottom_md
    fluid : Fluid or None
        Fluid in the interval; None is an air/vacuum void
    color : str
        Display colour
    """
    top_md: float
    bottom_md: float
    fluid: Optional[Fluid]
    color: str = AIR_COLOR

    @property
    def length(self) -> float:
        return self.bottom_md - self.top_md

    @property
    def key(self) -> Optional[str]:
        return self.fluid.key if self.fluid is not None else None

    @property
    def name(self) -> str:
        return self.fluid.name if self.fluid is not None else "Air"

    def clipped(self, top: float, bottom: float) -> Optional["FluidSegment"]:
        """The part of this segment inside [top, bottom], or None."""
        t = max(self.top_md, top)
        b = min(self.bottom_md, bottom)
        if b <= t:
            return None
        return replace(self, top_md=t, bottom_md=b)


@dataclass(frozen=True)
class VolumeParcel:
    """A volume of one fluid moving through the well [m³]."""
    volume: float
    fluid: Optional[Fluid]
    color: str = AIR_COLOR

    @property
    def key(self) -> Optional[str]:
        return self.fluid.key if self.fluid is not None else None

    @property
    def name(self) -> str:
        return self.fluid.name if self.fluid is not None else "Air"


def merge_segments(
    segments: Sequence[FluidSegment],
    tol: float = DEFAULT_CONFIG.SEGMENT_TOL,
) -> List[FluidSegment]:
    """
    Drop slivers and merge neighbours holding the same fluid.

    Segments must be ordered shallow to deep. A sliver thinner than ``tol``
    is absorbed into the segment above it (or below it at the top), so the
    covered interval never changes.
    """
    merged: List[FluidSegment] = []
    carry_top = None

    for seg in segments:
        top = seg.top_md if carry_top is None else carry_top
        if seg.bottom_md - top < tol:
            if merged:
                last = merged[-1]
                merged[-1] = replace(last, bottom_md=max(last.bottom_md, seg.bottom_md))
            else:
                carry_top = top
            continue

        carry_top = None
        if merged and merged[-1].key == seg.key and abs(merged[-1].bottom_md - top) <= tol:
            merged[-1] = replace(merged[-1], bottom_md=seg.bottom_md)
        else:
            if merged and abs(merged[-1].bottom_md - top) <= tol:
                top = merged[-1].bottom_md
            merged.append(replace(seg, top_md=top))

    return merged


def _push_front_trim_back(
    parcels: Sequence[VolumeParcel],
    parcel: VolumeParcel,
    capacity: float,
    tol: float,
) -> Tuple[List[VolumeParcel], List[VolumeParcel]]:
    out = list(parcels)
    if parcel.volume > tol:
        if out and out[0].key == parcel.key:
            out[0] = replace(out[0], volume=out[0].volume + parcel.volume)
        else:
            out.insert(0, parcel)

    overflow: List[VolumeParcel] = []
    excess = sum(p.volume for p in out) - max(capacity, 0.0)
    while excess > tol and out:
        last = out[-1]
        if last.volume <= excess + tol:
            overflow.append(out.pop())
            excess -= last.volume
        else:
            overflow.append(replace(last, volume=excess))
            out[-1] = replace(last, volume=last.volume - excess)
            excess = 0.0

    return out, overflow


def push_to_top_and_overflow(
    parcels: Sequence[VolumeParcel],
    parcel: VolumeParcel,
    capacity: float,
    tol: float = DEFAULT_CONFIG.VOLUME_TOL,
) -> Tuple[List[VolumeParcel], List[VolumeParcel]]:
    """
    Pump a parcel into the string at surface.

    Parameters
    ----------
    parcels : sequence of VolumeParcel
        String contents, surface first
    parcel : VolumeParcel
        Parcel entering at surface
    capacity : float
        String capacity [m³]
    tol : float
        Volume tolerance [m³]

    Returns
    -------
    parcels : list of VolumeParcel
        New string contents, surface first
    overflow : list of VolumeParcel
        Volume pushed out of the bit, in the order it left
    """
    return _push_front_trim_back(parcels, parcel, capacity, tol)


def push_to_bottom_and_overflow_top(
    parcels: Sequence[VolumeParcel],
    parcel: VolumeParcel,
    capacity: float,
    tol: float = DEFAULT_CONFIG.VOLUME_TOL,
) -> Tuple[List[VolumeParcel], List[VolumeParcel]]:
    """
    Push a parcel into the annulus at the connection point.

    ``parcels`` runs bottom first; the overflow is what leaves at surface,
    in the order it left.
    """
    return _push_front_trim_back(parcels, parcel, capacity, tol)


def string_segments_from_parcels(
    parcels: Sequence[VolumeParcel],
    geometry: WellGeometry,
    tol: float = DEFAULT_CONFIG.SEGMENT_TOL,
) -> List[FluidSegment]:
    """
    Lay string parcels out in depth, surface to bit.

    When the liquid does not fill the string, the missing volume is an air
    void at the top of the string.
    """
    profile = geometry.string_profile
    bottom_md = geometry.string_bottom_md
    if bottom_md <= 0:
        return []

    segments: List[FluidSegment] = []
    void = geometry.string_capacity - sum(p.volume for p in parcels)
    top = 0.0
    if void > 0:
        top = profile.depth_below(0.0, void)
        segments.append(FluidSegment(0.0, top, None, AIR_COLOR))

    for p in parcels:
        bottom = profile.depth_below(top, p.volume)
        segments.append(FluidSegment(top, bottom, p.fluid, p.color))
        top = bottom

    if segments:
        segments[-1] = replace(segments[-1], bottom_md=bottom_md)
    return merge_segments(segments, tol)


def annulus_segments_from_parcels(
    parcels: Sequence[VolumeParcel],
    geometry: WellGeometry,
    rathole_fluid: Optional[Fluid] = None,
    tol: float = DEFAULT_CONFIG.SEGMENT_TOL,
) -> List[FluidSegment]:
    """
    Lay annulus parcels out in depth, returned shallow to deep.

    Parcels stack upward from the connection point. Any unfilled annulus
    at surface is an air void. Open hole below the connection point (a
    rathole below the bit) is a stagnant segment of ``rathole_fluid``.
    """
    profile = geometry.annulus_profile
    connection = geometry.connection_md

    stacked: List[FluidSegment] = []
    bottom = connection
    for p in parcels:
        if bottom <= 0:
            break
        top = profile.depth_above(bottom, p.volume)
        stacked.append(FluidSegment(top, bottom, p.fluid, p.color))
        bottom = top
    if bottom > 0:
        stacked.append(FluidSegment(0.0, bottom, None, AIR_COLOR))

    segments = list(reversed(stacked))
    if segments:
        segments[0] = replace(segments[0], top_md=0.0)

    if geometry.annulus_bottom_md > connection:
        color = rathole_fluid.color if rathole_fluid is not None else AIR_COLOR
        segments.append(FluidSegment(connection, geometry.annulus_bottom_md, rathole_fluid, color))

    return merge_segments(segments, tol)


@dataclass(frozen=True)
class StackState:
    """
    Fluid columns of both compartments at one instant.

    Attributes
    ----------
    string : tuple of FluidSegment
        String column, surface to bit
    annulus : tuple of FluidSegment
        Annulus column, surface to annulus bottom
    expelled : tuple of VolumeParcel
        Returns taken at surface so far, in the order they came out
    string_parcels, annulus_parcels : tuple of VolumeParcel
        Parcel bookkeeping behind the segments
    diagnostics : tuple of Diagnostic
        Degenerate states recorded while producing this state
    """
    string: Tuple[FluidSegment, ...]
    annulus: Tuple[FluidSegment, ...]
    expelled: Tuple[VolumeParcel, ...] = ()
    string_parcels: Tuple[VolumeParcel, ...] = ()
    annulus_parcels: Tuple[VolumeParcel, ...] = ()
    diagnostics: Tuple[Diagnostic, ...] = ()

    def segments(self, side: Side) -> Tuple[FluidSegment, ...]:
        return self.string if Side(side) is Side.STRING else self.annulus

    def fluid_at(self, side: Side, md: float) -> Optional[Fluid]:
        """Fluid at a depth; None for air or outside the column."""
        segs = self.segments(side)
        for i, seg in enumerate(segs):
            last = i == len(segs) - 1
            if seg.top_md <= md < seg.bottom_md or (last and md == seg.bottom_md):
                return seg.fluid
        return None

    def composition(self, side: Side, top: float = 0.0, bottom: float = float("inf")) -> Dict[str, float]:
        """Length [m] of each fluid (by name) within [top, bottom]."""
        lengths: Dict[str, float] = {}
        for seg in self.segments(side):
            part = seg.clipped(top, bottom)
            if part is not None:
                lengths[part.name] = lengths.get(part.name, 0.0) + part.length
        return lengths

    def is_contiguous(self, side: Side, bottom: float, tol: float = DEFAULT_CONFIG.SEGMENT_TOL) -> bool:
        """True when the column covers exactly [0, bottom] without gaps or overlaps."""
        segs = self.segments(side)
        if not segs:
            return bottom <= tol
        if abs(segs[0].top_md) > tol or abs(segs[-1].bottom_md - bottom) > tol:
            return False
        return all(abs(a.bottom_md - b.top_md) <= tol for a, b in zip(segs, segs[1:]))

    @property
    def in_well_volume(self) -> float:
        """Liquid volume held in both compartments above the connection point [m³]."""
        return sum(p.volume for p in self.string_parcels) + sum(p.volume for p in self.annulus_parcels)

    @property
    def expelled_volume(self) -> float:
        return sum(p.volume for p in self.expelled)
