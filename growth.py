######################################################################
#
# growth.py
#
######################################################################
#
# Turns the depth-tagged primitives from turtle3d.py into a growth
# animation timeline:
#
#  - trunk segments (depth 0) grow one after another
#  - depth 1 segments stagger individually once the trunk hands off
#  - every deeper tier grows all at once, one tier after the next
#  - attachment nodes pop in together after the whole skeleton
#
# The host calls tick() once per frame; there is no clock of its own.

import logging
from collections import namedtuple

logger = logging.getLogger(__name__)

BRANCH = 'branch'
NODE = 'node'

GrowthTiming = namedtuple('GrowthTiming',
                          'segment_duration, segment_overlap, trunk_handoff, '
                          'segment_stagger, depth_duration, depth_overlap, '
                          'node_duration, max_tick, min_speed, max_speed',
                          defaults=(0.4, 0.5, 0.7,
                                    0.08, 0.5, 0.3,
                                    0.4, 1.0, 0.1, 3.0))

######################################################################

def ease_out_cubic(t):
    return 1 - (1 - t) ** 3

######################################################################

class AnimationEvent:

    """Playback state for one primitive.

    ``index`` is the primitive's position in the branch or node list it
    came from, so renderers can key their own objects on
    ``(category, index)``.
    """

    def __init__(self, category, index, target, start_time, duration):
        self.category = category
        self.index = index
        self.target = target
        self.start_time = start_time
        self.start_offset = start_time
        self.duration = duration
        self.progress = 0.0
        self.started = False
        self.completed = False

    @property
    def is_branch(self):
        return self.category == BRANCH

    @property
    def eased(self):
        return ease_out_cubic(self.progress)

    @property
    def scale(self):
        # branches extend from their base along the local axis,
        # nodes grow in place
        e = self.eased
        if self.is_branch:
            return (1.0, e, 1.0)
        return (e, e, e)

    def advance(self, elapsed):

        if self.completed:
            return

        self.start_offset -= elapsed

        if self.start_offset <= 0 and not self.started:
            self.started = True

        if self.started:
            self.progress += elapsed / self.duration
            if self.progress >= 1:
                self.progress = 1.0
                self.completed = True

    def snapshot(self):
        return (self.start_offset, self.progress, self.started, self.completed)

    def __repr__(self):
        return ('AnimationEvent({}, {}, start_time={:.3f}, duration={:.3f}, '
                'progress={:.3f})'.format(self.category, self.index,
                                          self.start_time, self.duration,
                                          self.progress))

######################################################################

class GrowthScheduler:

    def __init__(self, timing=None, speed=1.0):
        if timing is None:
            timing = GrowthTiming()
        self.timing = timing
        self.events = []
        self.speed = 1.0
        self._total_time = 0.0
        self._reported = False
        self.set_speed(speed)

    def set_speed(self, speed):
        self.speed = max(self.timing.min_speed,
                         min(speed, self.timing.max_speed))

    def total_time(self):
        return self._total_time

    ##################################################################
    # build a fresh timeline; any previous one is thrown away

    def plan(self, branches, nodes):

        timing = self.timing

        events = []

        trunk = []
        by_depth = {}
        max_depth = 0

        for index, segment in enumerate(branches):
            if segment.depth == 0:
                trunk.append((index, segment))
            else:
                by_depth.setdefault(segment.depth, []).append((index, segment))
                max_depth = max(max_depth, segment.depth)

        # trunk grows one segment at a time
        trunk_step = timing.segment_duration * (1 - timing.segment_overlap)
        trunk_end = 0.0

        for i, (index, segment) in enumerate(trunk):
            start = i * trunk_step
            events.append(AnimationEvent(BRANCH, index, segment,
                                         start, timing.segment_duration))
            trunk_end = start + timing.segment_duration * timing.trunk_handoff

        # first tier staggers off the trunk
        first_tier = by_depth.get(1, [])

        for i, (index, segment) in enumerate(first_tier):
            start = trunk_end + i * timing.segment_stagger
            events.append(AnimationEvent(BRANCH, index, segment,
                                         start, timing.depth_duration))

        branch_growth_end = trunk_end
        if first_tier:
            branch_growth_end = (trunk_end
                                 + len(first_tier) * timing.segment_stagger
                                 + timing.depth_duration)

        # deeper tiers grow in unison
        tier_step = timing.depth_duration * (1 - timing.depth_overlap)

        for depth in range(2, max_depth + 1):
            start = branch_growth_end + (depth - 2) * tier_step
            for index, segment in by_depth.get(depth, []):
                events.append(AnimationEvent(BRANCH, index, segment,
                                             start, timing.depth_duration))

        total_branch_time = (branch_growth_end
                             + max(0, max_depth - 1) * tier_step
                             + timing.depth_duration)

        # leaves and fruit all pop in together at the end
        for index, node in enumerate(nodes):
            events.append(AnimationEvent(NODE, index, node,
                                         total_branch_time,
                                         timing.node_duration))

        self.events = events
        self._reported = False

        self._total_time = max([e.start_time + e.duration for e in events],
                               default=0.0)

        logger.debug('growth plan: %d trunk, %d branches, %d nodes, '
                     'max depth %d, %.3f s',
                     len(trunk), len(branches) - len(trunk), len(nodes),
                     max_depth, self._total_time)

        return events

    ##################################################################
    # advance playback by one host frame

    def tick(self, delta_time):

        # drop suspended-tab spikes and clock hiccups; NaN fails both bounds
        if not 0 < delta_time <= self.timing.max_tick:
            return

        if self.is_complete():
            return

        elapsed = delta_time * self.speed

        for event in self.events:
            event.advance(elapsed)

        if self.is_complete() and not self._reported:
            self._reported = True
            logger.info('growth complete: %d events', len(self.events))

    def is_complete(self):
        return all(event.completed for event in self.events)

######################################################################
# drive a scheduler at a fixed frame rate until it finishes; returns
# the host time it took

def simulate(scheduler, delta_time=1.0 / 60, max_steps=1000000):

    # the scheduler would drop every one of these ticks
    if not 0 < delta_time <= scheduler.timing.max_tick:
        return 0.0

    elapsed = 0.0
    steps = 0

    while not scheduler.is_complete() and steps < max_steps:
        scheduler.tick(delta_time)
        elapsed += delta_time
        steps += 1

    return elapsed
