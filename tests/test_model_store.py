#!/usr/bin/env python3
"""
Tests for the conduit model store.

Tests cover:
- Segment and fitting registration keeping the connectivity graph in sync
- Routing default resolution fallbacks
- Run construction with fitting insertion
- Segment moves and run totals
"""

import pytest

from conduitgen.model.conduit_size import ConduitMaterialType, ConduitSize, ConduitSizeSettings
from conduitgen.model.conduit_type import ConduitType, FittingType, RoutingPreferenceRule
from conduitgen.model.elements import ConduitFitting, ConduitRun, ConduitSegment
from conduitgen.model.model_store import ConduitModelStore
from conduitgen.model.settings import ConduitSettings
from conduitgen.model.xyz import XYZ


def l_shape() -> list[ConduitSegment]:
    return [
        ConduitSegment(XYZ(0, 0, 10), XYZ(10, 0, 10)),
        ConduitSegment(XYZ(10, 0, 10), XYZ(10, 10, 10)),
    ]


def pvc_type() -> ConduitType:
    return ConduitType(
        id="pvc",
        name="PVC",
        standard=ConduitMaterialType.PVC,
        size_settings=ConduitSizeSettings(
            standard=ConduitMaterialType.PVC,
            sizes=[ConduitSize("1", 1.0, 1.315, 1.049, 0.32)],
        ),
    )


# =============================================================================
# SEGMENT / FITTING REGISTRATION TESTS
# =============================================================================


class TestRegistration:
    """Test add/remove keep connectors registered."""

    def test_add_segment_registers_connectors(self):
        store = ConduitModelStore()
        segment = ConduitSegment(XYZ(0, 0, 0), XYZ(10, 0, 0))
        change = store.add_segment(segment)

        assert change.applied
        assert change.registered == (f"{segment.id}-start", f"{segment.id}-end")
        assert len(segment.connectors) == 2
        assert f"{segment.id}-start" in store.connectivity
        assert store.get_segment(segment.id) is segment

    def test_segment_connector_directions(self):
        store = ConduitModelStore()
        segment = ConduitSegment(XYZ(0, 0, 0), XYZ(10, 0, 0))
        store.add_segment(segment)
        start = segment.connectors.get_connector(f"{segment.id}-start")
        end = segment.connectors.get_connector(f"{segment.id}-end")
        assert start.direction == XYZ(-1, 0, 0)
        assert end.direction == XYZ(1, 0, 0)

    def test_remove_segment_releases_connectors(self):
        store = ConduitModelStore()
        a, b = l_shape()
        store.add_segment(a)
        store.add_segment(b)
        store.connectivity.auto_connect()
        assert store.connectivity.get_connector(f"{b.id}-start").is_connected

        change = store.remove_segment(a.id)
        assert change.applied
        assert f"{a.id}-end" in change.released
        assert f"{a.id}-end" not in store.connectivity
        assert not store.connectivity.get_connector(f"{b.id}-start").is_connected
        assert store.get_segment(a.id) is None

    def test_remove_unknown_is_not_applied(self):
        store = ConduitModelStore()
        assert not store.remove_segment("missing").applied
        assert not store.remove_fitting("missing").applied

    def test_add_and_remove_fitting(self):
        store = ConduitModelStore()
        fitting = ConduitFitting(location=XYZ(1, 1, 1))
        fitting.initialize_connectors(XYZ.BASIS_X, XYZ.BASIS_Y)
        change = store.add_fitting(fitting)
        assert set(change.registered) == {f"{fitting.id}-in", f"{fitting.id}-out"}

        change = store.remove_fitting(fitting.id)
        assert change.applied
        assert len(store.connectivity) == 0

    def test_generate_run_id(self):
        store = ConduitModelStore()
        assert store.generate_run_id() == "CR-001"
        assert store.generate_run_id() == "CR-002"


# =============================================================================
# ROUTING DEFAULTS TESTS
# =============================================================================


class TestResolveRoutingDefaults:
    """Test type and trade size fallback chain."""

    def test_invalid_trade_size_falls_back_to_first(self):
        store = ConduitModelStore()
        store.add_type(pvc_type())
        defaults = store.resolve_routing_defaults("pvc", "9")
        assert defaults.trade_size == "1"
        assert defaults.material == ConduitMaterialType.PVC
        assert defaults.conduit_type_id == "pvc"

    def test_valid_request_is_kept(self):
        store = ConduitModelStore()
        emt = ConduitType(id="emt")
        store.add_type(emt)
        defaults = store.resolve_routing_defaults("emt", "3/4")
        assert defaults.trade_size == "3/4"
        assert defaults.material == ConduitMaterialType.EMT

    def test_unknown_type_uses_settings_default(self):
        store = ConduitModelStore(ConduitSettings(default_conduit_type_id="pvc"))
        store.add_type(ConduitType(id="emt"))
        store.add_type(pvc_type())
        assert store.resolve_routing_defaults("missing", "1").conduit_type_id == "pvc"

    def test_unknown_type_uses_any_registered(self):
        store = ConduitModelStore()
        store.add_type(pvc_type())
        assert store.resolve_routing_defaults("missing", None).conduit_type_id == "pvc"

    def test_empty_store_creates_default_type(self):
        store = ConduitModelStore()
        defaults = store.resolve_routing_defaults("", "1/2")
        assert store.get_type(defaults.conduit_type_id) is not None
        assert len(store.all_types()) == 1
        assert defaults.trade_size == "1/2"

    def test_type_without_sizes_uses_settings_trade_size(self):
        store = ConduitModelStore(ConduitSettings(default_trade_size="2"))
        store.add_type(ConduitType(id="bare", size_settings=ConduitSizeSettings()))
        assert store.resolve_routing_defaults("bare", "1").trade_size == "2"


# =============================================================================
# RUN CONSTRUCTION TESTS
# =============================================================================


class TestCreateRun:
    """Test run construction from segments."""

    def test_empty_segments_raise(self):
        with pytest.raises(ValueError, match="empty"):
            ConduitModelStore().create_run_from_segments([])

    def test_l_shape_gets_elbow(self):
        store = ConduitModelStore()
        a, b = l_shape()
        run = store.create_run_from_segments([a, b])

        assert run.run_id == "CR-001"
        assert run.segment_ids == [a.id, b.id]
        assert len(run.fitting_ids) == 1

        fitting = store.get_fitting(run.fitting_ids[0])
        assert fitting.fitting_type == FittingType.ELBOW_90
        assert fitting.angle_degrees == pytest.approx(90.0)
        assert fitting.location == XYZ(10, 0, 10)
        assert fitting.connected_segment_ids == [a.id, b.id]
        assert store.get_run(run.id) is run

    def test_fitting_is_chained_to_segments(self):
        store = ConduitModelStore()
        a, b = l_shape()
        run = store.create_run_from_segments([a, b])
        fid = run.fitting_ids[0]

        graph = store.connectivity
        assert graph.get_connector(f"{a.id}-end").connected_to_id == f"{fid}-in"
        assert graph.get_connector(f"{fid}-out").connected_to_id == f"{b.id}-start"
        # Only the two outer run ends stay open
        assert {c.id for c in graph.open_connectors()} == {f"{a.id}-start", f"{b.id}-end"}

    def test_type_without_fittings(self):
        store = ConduitModelStore()
        store.add_type(ConduitType(id="flex", is_with_fitting=False))
        segments = l_shape()
        for segment in segments:
            segment.conduit_type_id = "flex"
        run = store.create_run_from_segments(segments)

        assert run.fitting_ids == []
        # Segments still connect end to end
        assert store.connectivity.get_connector(f"{segments[0].id}-end").connected_to_id == (
            f"{segments[1].id}-start"
        )

    def test_auto_insert_disabled(self):
        store = ConduitModelStore(ConduitSettings(auto_insert_fittings=False))
        run = store.create_run_from_segments(l_shape())
        assert run.fitting_ids == []

    def test_straight_run_gets_coupling(self):
        store = ConduitModelStore()
        run = store.create_run_from_segments([
            ConduitSegment(XYZ(0, 0, 0), XYZ(10, 0, 0)),
            ConduitSegment(XYZ(10, 0, 0), XYZ(20, 0, 0)),
        ])
        assert store.get_fitting(run.fitting_ids[0]).fitting_type == FittingType.COUPLING

    @pytest.mark.parametrize(
        "end,expected",
        [
            # 30° and 70° bends fall in rule gaps; heuristic picks by the 60° threshold
            ((18.660254, 5.0, 0.0), FittingType.ELBOW_45),
            ((13.420201, 9.396926, 0.0), FittingType.ELBOW_90),
            ((5.0, 8.660254, 0.0), FittingType.ELBOW_90),
        ],
    )
    def test_fallback_elbow(self, end, expected):
        store = ConduitModelStore()
        run = store.create_run_from_segments([
            ConduitSegment(XYZ(0, 0, 0), XYZ(10, 0, 0)),
            ConduitSegment(XYZ(10, 0, 0), XYZ(*end)),
        ])
        assert store.get_fitting(run.fitting_ids[0]).fitting_type == expected

    def test_no_fitting_when_no_rule_and_outside_fallback(self):
        store = ConduitModelStore()
        store.add_type(ConduitType(id="sparse", routing_preferences=[
            RoutingPreferenceRule(80, 100, FittingType.ELBOW_90),
        ]))
        segments = [
            ConduitSegment(XYZ(0, 0, 0), XYZ(10, 0, 0), conduit_type_id="sparse"),
            ConduitSegment(XYZ(10, 0, 0), XYZ(20, 0, 0), conduit_type_id="sparse"),
        ]
        run = store.create_run_from_segments(segments)
        assert run.fitting_ids == []

    def test_segments_are_stamped_uniformly(self):
        store = ConduitModelStore()
        store.add_type(pvc_type())
        a, b = l_shape()
        a.conduit_type_id = "pvc"
        a.trade_size = "9"
        b.trade_size = "3/4"
        b.material = ConduitMaterialType.RMC

        run = store.create_run_from_segments([a, b])
        for segment in (a, b):
            assert segment.conduit_type_id == "pvc"
            assert segment.trade_size == "1"
            assert segment.material == ConduitMaterialType.PVC
            assert segment.diameter == pytest.approx(1.315)
        assert run.trade_size == "1"
        assert run.material == ConduitMaterialType.PVC

    def test_explicit_run_id(self):
        run = ConduitModelStore().create_run_from_segments(l_shape(), run_id="FEEDER-1")
        assert run.run_id == "FEEDER-1"

    def test_runs_meeting_are_auto_connected(self):
        store = ConduitModelStore()
        first = store.create_run_from_segments([ConduitSegment(XYZ(0, 0, 0), XYZ(10, 0, 0))])
        second = store.create_run_from_segments([ConduitSegment(XYZ(10, 0, 0), XYZ(10, 5, 0))])
        end = store.connectivity.get_connector(f"{first.segment_ids[0]}-end")
        assert end.connected_to_id == f"{second.segment_ids[0]}-start"


# =============================================================================
# MOVE / TOTAL LENGTH TESTS
# =============================================================================


class TestMoveAndLength:
    """Test endpoint moves and recomputed run length."""

    def test_total_length_tracks_segment_changes(self):
        store = ConduitModelStore()
        run = store.create_run_from_segments(l_shape())
        assert run.compute_total_length(store) == pytest.approx(20.0)

        store.move_segment(run.segment_ids[1], XYZ(10, 0, 10), XYZ(10, 25, 10))
        assert run.compute_total_length(store) == pytest.approx(35.0)

    def test_move_refreshes_connectors(self):
        store = ConduitModelStore()
        a = ConduitSegment(XYZ(0, 0, 0), XYZ(10, 0, 0))
        b = ConduitSegment(XYZ(20, 0, 0), XYZ(30, 0, 0))
        store.add_segment(a)
        store.add_segment(b)

        change = store.move_segment(b.id, XYZ(10, 0, 0), XYZ(20, 0, 0))
        assert change.applied
        start = store.connectivity.get_connector(f"{b.id}-start")
        assert start.origin == XYZ(10, 0, 0)
        assert start.connected_to_id == f"{a.id}-end"

    def test_move_unknown_segment(self):
        assert not ConduitModelStore().move_segment("missing", XYZ.ZERO, XYZ.BASIS_X).applied

    def test_run_skips_missing_segments(self):
        store = ConduitModelStore()
        run = store.create_run_from_segments(l_shape())
        store.remove_segment(run.segment_ids[0])
        assert len(run.get_segments(store)) == 1
        assert run.compute_total_length(store) == pytest.approx(10.0)

    def test_remove_run_keeps_segments(self):
        store = ConduitModelStore()
        run = store.create_run_from_segments(l_shape())
        assert store.remove_run(run.id)
        assert not store.remove_run(run.id)
        assert len(store.all_segments()) == 2

    def test_empty_run_length_is_zero(self):
        assert ConduitRun().compute_total_length(ConduitModelStore()) == 0
