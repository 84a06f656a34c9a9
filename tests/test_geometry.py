"""
Unit tests for wellbore geometry and MD→TVD mapping.
"""

import pytest
import numpy as np

from wellcontrol.geometry import (
    AnnulusSection,
    AreaProfile,
    ConduitKind,
    Side,
    StringSection,
    TvdSampler,
    WellGeometry,
)

from conftest import ANNULUS_AREA, HOLE_ID, STRING_AREA, STRING_ID, STRING_OD


class TestSections:
    """Test section records and validation."""

    def test_string_section_capacity(self):
        sec = StringSection("DP", 0.0, 100.0, inner_diameter=0.1, outer_diameter=0.12)

        assert sec.bottom_md == 100.0
        assert np.isclose(sec.capacity_per_m, np.pi * 0.01 / 4)
        assert np.isclose(sec.displacement_per_m, np.pi * (0.0144 - 0.01) / 4)
        assert np.isclose(sec.volume, np.pi * 0.01 / 4 * 100.0)

    def test_annulus_section_area(self):
        sec = AnnulusSection("Casing", 100.0, 50.0, inner_diameter=HOLE_ID, outer_diameter=STRING_OD)

        assert sec.bottom_md == 150.0
        assert np.isclose(sec.flow_area, ANNULUS_AREA)
        assert np.isclose(sec.hydraulic_diameter, HOLE_ID - STRING_OD)

    @pytest.mark.parametrize("kwargs", [
        dict(top_md=0.0, length=0.0, inner_diameter=0.1, outer_diameter=0.12),
        dict(top_md=-1.0, length=10.0, inner_diameter=0.1, outer_diameter=0.12),
        dict(top_md=0.0, length=10.0, inner_diameter=0.12, outer_diameter=0.12),
        dict(top_md=0.0, length=10.0, inner_diameter=0.0, outer_diameter=0.12),
    ])
    def test_invalid_string_section(self, kwargs):
        with pytest.raises(ValueError):
            StringSection("bad", **kwargs)

    def test_invalid_annulus_section(self):
        with pytest.raises(ValueError, match="inner_diameter"):
            AnnulusSection("bad", 0.0, 10.0, inner_diameter=0.1, outer_diameter=0.127)
        with pytest.raises(ValueError, match="length"):
            AnnulusSection("bad", 0.0, -5.0, inner_diameter=0.2, outer_diameter=0.1)


class TestAreaProfile:
    """Test volume/depth conversions across area changes."""

    def test_volume_between(self):
        profile = AreaProfile([0.0, 100.0, 200.0], [0.01, 0.02])

        assert np.isclose(profile.total_volume, 3.0)
        assert np.isclose(profile.volume_between(50.0, 150.0), 0.5 + 1.0)
        assert profile.volume_between(150.0, 50.0) == 0.0

    def test_depth_below_and_above(self):
        profile = AreaProfile([0.0, 100.0, 200.0], [0.01, 0.02])

        assert np.isclose(profile.depth_below(50.0, 1.5), 150.0)
        assert np.isclose(profile.depth_above(150.0, 1.5), 50.0)
        assert np.isclose(profile.depth_below(0.0, 0.5), 50.0)

    def test_depth_clamped_at_bounds(self):
        profile = AreaProfile([0.0, 100.0, 200.0], [0.01, 0.02])

        assert profile.depth_below(0.0, 100.0) == 200.0
        assert profile.depth_above(200.0, 100.0) == 0.0

    def test_zero_area_gap_is_crossed(self):
        """A zero-area interval consumes no volume."""
        profile = AreaProfile([0.0, 10.0, 20.0, 30.0], [1.0, 0.0, 1.0])

        assert np.isclose(profile.depth_below(5.0, 10.0), 25.0)
        assert np.isclose(profile.depth_above(25.0, 10.0), 5.0)

    def test_area_at(self):
        profile = AreaProfile([0.0, 100.0, 200.0], [0.01, 0.02])

        assert profile.area_at(50.0) == 0.01
        assert profile.area_at(150.0) == 0.02
        assert profile.area_at(250.0) == 0.0

    def test_invalid_breaks(self):
        with pytest.raises(ValueError):
            AreaProfile([0.0, 100.0, 50.0], [1.0, 1.0])
        with pytest.raises(ValueError):
            AreaProfile([0.0, 100.0], [1.0, 1.0])


class TestWellGeometry:
    """Test compartments built from sections."""

    def test_capacities(self, geometry):
        assert geometry.bit_md == 800.0
        assert geometry.connection_md == 800.0
        assert np.isclose(geometry.string_capacity, STRING_AREA * 800.0)
        assert np.isclose(geometry.annulus_capacity, ANNULUS_AREA * 800.0)

    def test_lookups(self, geometry):
        assert geometry.pipe_id(400.0) == STRING_ID
        assert geometry.pipe_od(400.0) == STRING_OD
        assert geometry.hole_id(400.0) == HOLE_ID
        assert np.isclose(geometry.string_area(400.0), STRING_AREA)
        assert np.isclose(geometry.annulus_area(400.0), ANNULUS_AREA)

    def test_length_conversions(self, geometry):
        L = geometry.length_for_string_volume(0.0, 5.0)
        assert np.isclose(L, 5.0 / STRING_AREA)

        L_ann = geometry.length_for_annulus_volume_from_bottom(800.0, 3.0)
        assert np.isclose(L_ann, 3.0 / ANNULUS_AREA)

    def test_tapered_string(self):
        geom = WellGeometry(
            [
                StringSection("DP", 0.0, 600.0, inner_diameter=0.095, outer_diameter=0.127),
                StringSection("HWDP", 600.0, 200.0, inner_diameter=0.065, outer_diameter=0.127),
            ],
            [AnnulusSection("Hole", 0.0, 800.0, inner_diameter=0.216)],
        )
        a1 = np.pi * 0.095 ** 2 / 4
        a2 = np.pi * 0.065 ** 2 / 4

        assert np.isclose(geom.string_capacity, a1 * 600 + a2 * 200)
        # volume filling the DP and 50 m of HWDP
        L = geom.length_for_string_volume(0.0, a1 * 600 + a2 * 50)
        assert np.isclose(L, 650.0)
        np.testing.assert_allclose(geom.breakpoints(Side.STRING, 500.0, 700.0), [500.0, 600.0, 700.0])

    def test_pipe_od_from_string_section(self):
        geom = WellGeometry(
            [StringSection("DP", 0.0, 500.0, inner_diameter=0.095, outer_diameter=0.127)],
            [AnnulusSection("Casing", 0.0, 500.0, inner_diameter=0.244, outer_diameter=0.127)],
        )
        assert geom.pipe_od(250.0) == 0.127

    def test_rathole_below_bit(self):
        geom = WellGeometry(
            [StringSection("DP", 0.0, 800.0, inner_diameter=STRING_ID, outer_diameter=STRING_OD)],
            [AnnulusSection("Hole", 0.0, 900.0, inner_diameter=HOLE_ID)],
        )

        assert geom.connection_md == 800.0
        assert geom.annulus_bottom_md == 900.0
        assert geom.pipe_od(850.0) == 0.0
        assert np.isclose(geom.annulus_area(850.0), np.pi * HOLE_ID ** 2 / 4)
        assert np.isclose(geom.annulus_capacity, ANNULUS_AREA * 800.0)

    def test_conduits(self, geometry):
        pipe = geometry.conduit(Side.STRING, 100.0)
        ann = geometry.conduit(Side.ANNULUS, 100.0)

        assert pipe.kind is ConduitKind.PIPE
        assert np.isclose(pipe.hydraulic_diameter, STRING_ID)
        assert ann.kind is ConduitKind.ANNULUS
        assert np.isclose(ann.hydraulic_diameter, HOLE_ID - STRING_OD)
        assert np.isclose(ann.area, ANNULUS_AREA)

    def test_empty_string(self):
        geom = WellGeometry([], [AnnulusSection("Hole", 0.0, 300.0, inner_diameter=0.2)])

        assert geom.string_capacity == 0.0
        assert geom.bit_md == 300.0
        assert geom.connection_md == 300.0


class TestTvdSampler:
    """Test survey interpolation."""

    def test_vertical_identity(self):
        sampler = TvdSampler()

        assert sampler.is_vertical
        assert sampler.tvd(523.0) == 523.0
        np.testing.assert_allclose(sampler.tvd([0.0, 10.0]), [0.0, 10.0])

    def test_interpolation(self):
        sampler = TvdSampler([0.0, 500.0, 1000.0], [0.0, 500.0, 900.0])

        assert np.isclose(sampler.tvd(250.0), 250.0)
        assert np.isclose(sampler.tvd(750.0), 700.0)
        assert np.isclose(sampler(1000.0), 900.0)

    def test_unsorted_and_duplicate_stations(self):
        sampler = TvdSampler([1000.0, 0.0, 500.0, 500.0], [900.0, 0.0, 500.0, 400.0])

        np.testing.assert_allclose(sampler.md_ray, [0.0, 500.0, 1000.0])
        assert np.isclose(sampler.tvd(500.0), 500.0)

    def test_extension_beyond_last_station(self):
        sampler = TvdSampler([0.0, 500.0, 1000.0], [0.0, 500.0, 900.0])

        assert np.isclose(sampler.tvd(1100.0), 980.0)

    def test_anchored_at_surface(self):
        sampler = TvdSampler([100.0, 200.0], [100.0, 150.0])

        assert np.isclose(sampler.tvd(50.0), 50.0)
        assert np.isclose(sampler.tvd(150.0), 125.0)

    def test_mismatched_lengths(self):
        with pytest.raises(ValueError):
            TvdSampler([0.0, 100.0], [0.0])

    def test_from_stations(self):
        sampler = TvdSampler.from_stations([{"md": 0.0, "tvd": 0.0}, {"md": 800.0, "tvd": 600.0}])

        assert np.isclose(sampler.tvd(400.0), 300.0)
