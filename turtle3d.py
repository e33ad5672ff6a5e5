######################################################################
#
# turtle3d.py
#
######################################################################
#
# 3D turtle interpretation of an L-system string. The turtle walks the
# string once and emits depth-tagged branch segments and attachment
# nodes; pushes and pops are handled with an explicit stack so no
# recursion is involved.
#
# Symbols:
#
#   F  move forward and draw a branch segment
#   f  move forward without drawing
#   +  yaw about the world vertical axis, positive
#   -  yaw about the world vertical axis, negative
#   &  pitch about the turtle's lateral axis, positive
#   ^  pitch about the turtle's lateral axis, negative
#   \  roll about the turtle's heading, positive
#   /  roll about the turtle's heading, negative
#   [  push state
#   ]  pop state
#   A  apex/bud node
#   B  blossom node
#   !  taper the current radius
#
# Anything else is ignored.

import math
import logging
from collections import namedtuple
import numpy as np
from scipy.spatial.transform import Rotation as ScipyRotation

logger = logging.getLogger(__name__)

UP = np.array([0., 1., 0.])
LATERAL = np.array([1., 0., 0.])

NODE_RADIUS_SCALE = 2.0
TAPER_FACTOR = 0.8

TurtleParams = namedtuple('TurtleParams',
                          'angle_deg, base_length, base_radius, '
                          'length_factor, radius_factor',
                          defaults=(25.0, 0.5, 0.08, 0.9, 0.7))

BranchSegment = namedtuple('BranchSegment',
                           'start, end, radius, depth, orientation')

AttachmentNode = namedtuple('AttachmentNode',
                            'position, kind, depth, radius')

TurtleState = namedtuple('TurtleState',
                         'position, orientation, length, radius, depth')

######################################################################

class Rotation:

    """Immutable 3D rotation, wrapping scipy's ``Rotation``.

    Composition uses premultiply: ``a.premultiply(b)`` is the rotation
    that applies ``a`` first and then ``b``.
    """

    __slots__ = ('_r',)

    def __init__(self, rotation):
        self._r = rotation

    @classmethod
    def identity(cls):
        return cls(ScipyRotation.identity())

    @classmethod
    def from_axis_angle(cls, axis, angle):
        axis = np.asarray(axis, dtype=float)
        axis = axis / np.linalg.norm(axis)
        return cls(ScipyRotation.from_rotvec(angle * axis))

    def as_quat(self):
        # scalar first: (w, x, y, z)
        x, y, z, w = self._r.as_quat()
        return (float(w), float(x), float(y), float(z))

    def premultiply(self, other):
        return Rotation(other._r * self._r)

    def apply(self, vector):
        return self._r.apply(np.asarray(vector, dtype=float))

    def __eq__(self, other):
        if not isinstance(other, Rotation):
            return NotImplemented
        return np.array_equal(self._r.as_quat(), other._r.as_quat())

    def __hash__(self):
        return hash(self.as_quat())

    def __repr__(self):
        return 'Rotation({})'.format(self.as_quat())

######################################################################
# primitives hold plain float tuples so they compare and hash cleanly

def _as_point(v):
    return tuple(float(c) for c in v)

def heading(orientation):
    return orientation.apply(UP)

def lateral(orientation):
    return orientation.apply(LATERAL)

def _yaw(orientation, angle):
    r = Rotation.from_axis_angle(UP, angle)
    return orientation.premultiply(r)

def _pitch(orientation, angle):
    r = Rotation.from_axis_angle(lateral(orientation), angle)
    return orientation.premultiply(r)

def _roll(orientation, angle):
    r = Rotation.from_axis_angle(heading(orientation), angle)
    return orientation.premultiply(r)

_ROTATIONS = {
    '+': (_yaw, 1),
    '-': (_yaw, -1),
    '&': (_pitch, 1),
    '^': (_pitch, -1),
    '\\': (_roll, 1),
    '/': (_roll, -1),
}

######################################################################
# walk a string and return (branches, nodes). Every push saves the
# full state and then shrinks length and radius for the child; a pop
# with nothing on the stack does nothing.

def interpret(lstring, params=None):

    if params is None:
        params = TurtleParams()

    angle = math.radians(params.angle_deg)

    position = np.zeros(3)
    orientation = Rotation.identity()
    length = params.base_length
    radius = params.base_radius
    depth = 0

    stack = []

    branches = []
    nodes = []

    for symbol in lstring:

        if symbol == 'F' or symbol == 'f':

            new_position = position + heading(orientation) * length

            if symbol == 'F':
                branches.append(BranchSegment(
                    start = _as_point(position),
                    end = _as_point(new_position),
                    radius = radius,
                    depth = depth,
                    orientation = orientation))

            position = new_position

        elif symbol in _ROTATIONS:

            rotate, sign = _ROTATIONS[symbol]
            orientation = rotate(orientation, sign * angle)

        elif symbol == '[':

            stack.append(TurtleState(position, orientation,
                                     length, radius, depth))

            length *= params.length_factor
            radius *= params.radius_factor
            depth += 1

        elif symbol == ']':

            if stack:
                position, orientation, length, radius, depth = stack.pop()

        elif symbol == 'A' or symbol == 'B':

            nodes.append(AttachmentNode(
                position = _as_point(position),
                kind = symbol,
                depth = depth,
                radius = radius * NODE_RADIUS_SCALE))

        elif symbol == '!':

            radius *= TAPER_FACTOR

    if stack:
        logger.debug('%d unmatched pushes left on the stack', len(stack))

    return branches, nodes

######################################################################
# segments returned as an n-by-2-by-3 array where each segment is
# represented as [(x0, y0, z0), (x1, y1, z1)]

def segments_array(branches):

    if not branches:
        return np.zeros((0, 2, 3))

    return np.array([[b.start, b.end] for b in branches])

def node_positions(nodes):

    if not nodes:
        return np.zeros((0, 3))

    return np.array([n.position for n in nodes])
