import math
import random

import numpy as np
import pytest

from turtle3d import (
    LATERAL,
    UP,
    AttachmentNode,
    BranchSegment,
    Rotation,
    TurtleParams,
    heading,
    interpret,
    node_positions,
    segments_array,
)

RIGHT_ANGLE = TurtleParams(angle_deg=90)


def end_of(lstring, params=RIGHT_ANGLE):
    branches, _ = interpret(lstring, params)
    return np.array(branches[-1].end)


class TestRotation:
    def test_identity(self):
        np.testing.assert_allclose(Rotation.identity().apply(UP), UP)

    def test_axis_angle(self):
        r = Rotation.from_axis_angle(UP, math.pi / 2)
        np.testing.assert_allclose(r.apply(LATERAL), [0, 0, -1], atol=1e-12)

    def test_premultiply_applies_other_second(self):
        a = Rotation.from_axis_angle(LATERAL, math.pi / 2)
        b = Rotation.from_axis_angle(UP, math.pi / 3)
        v = np.array([0.3, -1.2, 2.0])
        np.testing.assert_allclose(a.premultiply(b).apply(v),
                                   b.apply(a.apply(v)), atol=1e-12)

    def test_stays_unit(self):
        r = Rotation.identity()
        step = Rotation.from_axis_angle([1, 1, 0], 0.1)
        for _ in range(1000):
            r = r.premultiply(step)
        assert np.linalg.norm(r.as_quat()) == pytest.approx(1.0)

    def test_premultiply_leaves_operands_alone(self):
        a = Rotation.from_axis_angle(LATERAL, 0.4)
        b = Rotation.from_axis_angle(UP, 1.1)
        a_quat, b_quat = a.as_quat(), b.as_quat()
        a.premultiply(b)
        assert a.as_quat() == a_quat
        assert b.as_quat() == b_quat

    def test_quaternion_is_scalar_first(self):
        assert Rotation.identity().as_quat() == (1.0, 0.0, 0.0, 0.0)
        w, x, y, z = Rotation.from_axis_angle(UP, math.pi / 2).as_quat()
        assert w == pytest.approx(math.sqrt(0.5))
        assert y == pytest.approx(math.sqrt(0.5))
        assert x == pytest.approx(0.0, abs=1e-12)
        assert z == pytest.approx(0.0, abs=1e-12)

    def test_equality(self):
        a = Rotation.from_axis_angle(UP, 0.5)
        b = Rotation.from_axis_angle(UP, 0.5)
        assert a == b
        assert hash(a) == hash(b)
        assert a != Rotation.identity()


class TestForward:
    def test_single_segment(self):
        branches, nodes = interpret('F')
        assert nodes == []
        assert len(branches) == 1
        segment = branches[0]
        assert segment.start == (0.0, 0.0, 0.0)
        assert segment.end == (0.0, 0.5, 0.0)
        assert segment.radius == 0.08
        assert segment.depth == 0
        assert segment.orientation == Rotation.identity()

    def test_move_without_drawing(self):
        branches, _ = interpret('fF')
        assert len(branches) == 1
        assert branches[0].start == (0.0, 0.5, 0.0)
        assert branches[0].end == (0.0, 1.0, 0.0)

    def test_unknown_symbols_ignored(self):
        branches, nodes = interpret('XYZ F 7')
        assert len(branches) == 1
        assert nodes == []

    def test_empty_string(self):
        assert interpret('') == ([], [])


class TestRotations:
    def test_yaw_keeps_vertical_heading(self):
        np.testing.assert_allclose(end_of('+F'), [0, 0.5, 0], atol=1e-12)

    def test_pitch(self):
        np.testing.assert_allclose(end_of('&F'), [0, 0, 0.5], atol=1e-12)
        np.testing.assert_allclose(end_of('^F'), [0, 0, -0.5], atol=1e-12)

    def test_roll_keeps_heading(self):
        np.testing.assert_allclose(end_of('\\F'), [0, 0.5, 0], atol=1e-12)
        np.testing.assert_allclose(end_of('/F'), [0, 0.5, 0], atol=1e-12)

    def test_pitch_axis_follows_yaw(self):
        np.testing.assert_allclose(end_of('+&F'), [0.5, 0, 0], atol=1e-12)
        np.testing.assert_allclose(end_of('-&F'), [-0.5, 0, 0], atol=1e-12)

    def test_pitch_and_roll_do_not_commute(self):
        np.testing.assert_allclose(end_of('&\\F'), [0, 0, 0.5], atol=1e-12)
        np.testing.assert_allclose(end_of('\\&F'), [0.5, 0, 0], atol=1e-12)

    def test_pitch_bends_from_present_heading(self):
        params = TurtleParams(angle_deg=45)
        np.testing.assert_allclose(end_of('&&F', params), end_of('&F', RIGHT_ANGLE),
                                   atol=1e-12)

    def test_segment_records_orientation(self):
        branches, _ = interpret('&F', RIGHT_ANGLE)
        np.testing.assert_allclose(heading(branches[0].orientation),
                                   [0, 0, 1], atol=1e-12)


class TestStack:
    def test_push_shrinks_child_only(self):
        branches, _ = interpret('F[F]F')
        trunk, child, top = branches
        assert child.depth == 1
        assert child.radius == pytest.approx(0.08 * 0.7)
        assert np.array(child.end)[1] - np.array(child.start)[1] == pytest.approx(0.45)
        assert top.depth == 0
        assert top.radius == 0.08
        assert top.start == (0.0, 0.5, 0.0)
        assert top.end == (0.0, 1.0, 0.0)

    def test_pop_restores_orientation(self):
        branches, _ = interpret('[&F]F', RIGHT_ANGLE)
        assert branches[1].start == (0.0, 0.0, 0.0)
        np.testing.assert_allclose(branches[1].end, [0, 0.5, 0], atol=1e-12)

    def test_nested_depth(self):
        branches, _ = interpret('[[F]F]F')
        assert [b.depth for b in branches] == [2, 1, 0]
        assert branches[0].radius == pytest.approx(0.08 * 0.7 * 0.7)

    def test_excess_pops_are_noops(self):
        branches, nodes = interpret(']]F]A')
        assert branches[0].depth == 0
        assert branches[0].start == (0.0, 0.0, 0.0)
        assert nodes[0].depth == 0

    def test_residual_depth_matches_unmatched_pushes(self):
        rng = random.Random(7)
        for _ in range(200):
            lstring = ''.join(rng.choice('[]F') for _ in range(rng.randint(0, 40)))
            open_pushes = 0
            for symbol in lstring:
                if symbol == '[':
                    open_pushes += 1
                elif symbol == ']' and open_pushes:
                    open_pushes -= 1
            branches, nodes = interpret(lstring + 'A')
            assert nodes[-1].depth == open_pushes
            assert all(b.depth >= 0 for b in branches)


class TestNodesAndTaper:
    def test_node_markers(self):
        _, nodes = interpret('FA[B]')
        assert nodes == [
            AttachmentNode((0.0, 0.5, 0.0), 'A', 0, 0.16),
            AttachmentNode((0.0, 0.5, 0.0), 'B', 1, 0.08 * 0.7 * 2),
        ]

    def test_taper(self):
        branches, _ = interpret('!F')
        assert branches[0].radius == pytest.approx(0.064)

    def test_taper_undone_by_pop(self):
        branches, _ = interpret('[!F]F')
        assert branches[0].radius == pytest.approx(0.08 * 0.7 * 0.8)
        assert branches[1].radius == 0.08

    def test_taper_persists(self):
        branches, _ = interpret('!F!F')
        assert branches[1].radius == pytest.approx(0.08 * 0.8 * 0.8)


class TestDeterminism:
    def test_identical_output(self):
        lstring = 'FF[&FA][^FA][+&FA][-&FA][+^FA][-^FA]\\/!F[B]' * 5
        params = TurtleParams(32, 0.7, 0.45, 0.72, 0.58)
        first = interpret(lstring, params)
        second = interpret(lstring, params)
        assert first == second
        assert all(isinstance(b, BranchSegment) for b in first[0])


class TestArrays:
    def test_segments_array(self):
        branches, _ = interpret('FF')
        segments = segments_array(branches)
        assert segments.shape == (2, 2, 3)
        np.testing.assert_allclose(segments[1], [[0, 0.5, 0], [0, 1.0, 0]])

    def test_empty_arrays(self):
        assert segments_array([]).shape == (0, 2, 3)
        assert node_positions([]).shape == (0, 3)

    def test_node_positions(self):
        _, nodes = interpret('FAFB')
        np.testing.assert_allclose(node_positions(nodes),
                                   [[0, 0.5, 0], [0, 1.0, 0]])
