#!/usr/bin/env python
######################################################################
#
# lsystems.py
#
######################################################################
#
# Based on documentation in https://en.wikipedia.org/wiki/L-system and
# http://paulbourke.net/fractals/lsys/
#
# Builds plant strings by iterated string replacement, turns them into
# a 3D branching skeleton (see turtle3d.py) and schedules a growth
# animation over the result (see growth.py).

import sys
import random
import logging
import argparse
from datetime import datetime
from collections import namedtuple, Counter
from collections.abc import Mapping
import numpy as np

from turtle3d import TurtleParams, interpret, segments_array, node_positions
from growth import GrowthScheduler, simulate
from plot_segments import plot_segments

logger = logging.getLogger(__name__)

MIN_ITERATIONS = 1
MAX_ITERATIONS = 7

DRAW_SYMBOL = 'F'
NODE_SYMBOLS = 'AB'

PlantPreset = namedtuple('PlantPreset',
                         'axiom, rules, angle, length_factor, radius_factor, '
                         'base_length, base_radius, colors')

GenerationStats = namedtuple('GenerationStats',
                             'axiom, iterations, final_length, '
                             'branch_count, node_count')

Plant = namedtuple('Plant', 'name, lstring, params, stats, branches, nodes')

# dictionary mapping names to the plant grammars we know how to grow
KNOWN_PLANTS = {

    # classic branching tree, trunk with a mid-branch point
    'tree': PlantPreset(
        axiom = 'FFFFBA',
        rules = dict(F='F',
                     B='[+&FA][-&FA]F',
                     A='FF[&FA][^FA][+&FA][-&FA][+^FA][-^FA]'),
        angle = 32,
        length_factor = 0.72,
        radius_factor = 0.58,
        base_length = 0.7,
        base_radius = 0.45,
        colors = dict(trunk='#5D4037', leaf='#2E7D32')
    ),

    'bush': PlantPreset(
        axiom = 'A',
        rules = dict(A='[&FLA]////[&FLA]////[&FLA]',
                     F='S//F',
                     S='F',
                     L='[^^^B]'),
        angle = 22.5,
        length_factor = 0.85,
        radius_factor = 0.65,
        base_length = 0.3,
        base_radius = 0.05,
        colors = dict(trunk='#556B2F', leaf='#90EE90')
    ),

    'fern': PlantPreset(
        axiom = 'FFFA',
        rules = dict(A='F[++++++++++++++B]F[--------------B]+A',
                     B='F&B'),
        angle = 8,
        length_factor = 0.92,
        radius_factor = 0.8,
        base_length = 0.15,
        base_radius = 0.02,
        colors = dict(trunk='#2E8B57', leaf='#3CB371')
    ),

    'flower': PlantPreset(
        axiom = 'FA',
        rules = dict(A='[&FLA]////[&FLA]////[&FLA]',
                     F='S/////F',
                     S='FL',
                     L='[^^B]'),
        angle = 18,
        length_factor = 0.88,
        radius_factor = 0.7,
        base_length = 0.25,
        base_radius = 0.03,
        colors = dict(trunk='#228B22', leaf='#FF69B4')
    ),

    # tall conifer
    'pine': PlantPreset(
        axiom = 'FFFFFA',
        rules = dict(A='F[&&&&+++B][&&&&---B][&&&&++++B][&&&&----B]FA',
                     B='FB'),
        angle = 30,
        length_factor = 0.75,
        radius_factor = 0.72,
        base_length = 0.4,
        base_radius = 0.1,
        colors = dict(trunk='#4A3728', leaf='#006400')
    ),

    'alien': PlantPreset(
        axiom = 'A',
        rules = dict(A='[+FA][-FA][&FA][^FA]'),
        angle = 45,
        length_factor = 0.707,
        radius_factor = 0.6,
        base_length = 0.8,
        base_radius = 0.04,
        colors = dict(trunk='#9932CC', leaf='#00FFFF')
    )

}

DEFAULT_PLANT = 'tree'

######################################################################
# branching rules multiply the string length every pass, so the
# number of passes is kept in [1, 7]

def clamp_iterations(iterations):
    # clamp before int() so inf is safe; NaN ends up at MIN_ITERATIONS
    return int(max(MIN_ITERATIONS, min(iterations, MAX_ITERATIONS)))

######################################################################
# pick the replacement for one occurrence of a symbol. A rule is
# either a string, a sequence of equally likely strings, or a mapping
# from replacement string to weight.

def _choose_replacement(rule, rng):

    if isinstance(rule, str):
        return rule

    if isinstance(rule, Mapping):
        options = list(rule.keys())
        weights = list(rule.values())
        return rng.choices(options, weights=weights)[0]

    return rng.choice(rule)

######################################################################
# make a big ol' string from an axiom using repeated string
# replacement. Symbols with no rule are copied verbatim.

def lsys_build_string(axiom, rules, iterations, rng=None):

    if rng is None:
        rng = random.Random()

    lstring = axiom

    for i in range(clamp_iterations(iterations)):

        output = []

        for symbol in lstring:
            if symbol in rules:
                output.append(_choose_replacement(rules[symbol], rng))
            else:
                output.append(symbol)

        lstring = ''.join(output)

    return lstring

######################################################################
# one counting pass over the final string

def lsys_generation_stats(axiom, lstring, iterations):

    counts = Counter(lstring)

    return GenerationStats(
        axiom = axiom,
        iterations = clamp_iterations(iterations),
        final_length = len(lstring),
        branch_count = counts[DRAW_SYMBOL],
        node_count = sum(counts[s] for s in NODE_SYMBOLS)
    )

######################################################################
# per-plant variation, decided here so the turtle itself stays
# deterministic

def randomized_params(preset, rng):

    return TurtleParams(
        angle_deg = preset.angle + (rng.random() - 0.5) * 15,
        base_length = preset.base_length * (0.85 + rng.random() * 0.3),
        base_radius = preset.base_radius * (0.9 + rng.random() * 0.2),
        length_factor = preset.length_factor + (rng.random() - 0.5) * 0.1,
        radius_factor = preset.radius_factor + (rng.random() - 0.5) * 0.08
    )

def preset_params(preset):

    return TurtleParams(
        angle_deg = preset.angle,
        base_length = preset.base_length,
        base_radius = preset.base_radius,
        length_factor = preset.length_factor,
        radius_factor = preset.radius_factor
    )

######################################################################
# rules -> string -> primitives for a named preset

def build_plant(name, iterations, rng=None, jitter=True):

    if rng is None:
        rng = random.Random()

    if name not in KNOWN_PLANTS:
        logger.warning('unknown plant %r, growing %r instead',
                       name, DEFAULT_PLANT)
        name = DEFAULT_PLANT

    preset = KNOWN_PLANTS[name]

    if jitter:
        params = randomized_params(preset, rng)
    else:
        params = preset_params(preset)

    lstring = lsys_build_string(preset.axiom, preset.rules, iterations, rng)
    stats = lsys_generation_stats(preset.axiom, lstring, iterations)

    logger.debug('%s: %d symbols after %d iterations',
                 name, stats.final_length, stats.iterations)

    branches, nodes = interpret(lstring, params)

    logger.info('generated plant %s: %d branches, %d nodes',
                name, len(branches), len(nodes))

    return Plant(name, lstring, params, stats, branches, nodes)

######################################################################
# parse command-line options for this program

def parse_options(argv=None):

    parser = argparse.ArgumentParser(
        description='grow a 3D L-system plant')

    parser.add_argument('pname', metavar='PLANT', nargs='?',
                        default=DEFAULT_PLANT,
                        help='name of desired plant',
                        type=str,
                        choices=KNOWN_PLANTS)

    parser.add_argument('iterations', metavar='ITERATIONS', nargs='?',
                        default=4,
                        help='rewriting passes (clamped to 1..7)', type=int)

    parser.add_argument('-x', dest='max_segments', metavar='MAXSEGMENTS',
                        type=int, default=100000,
                        help='maximum number of segments to plot')

    parser.add_argument('-t', dest='text_only', action='store_true',
                        help='use text output instead of PNG')

    parser.add_argument('-o', dest='image_filename', metavar='FILENAME',
                        default='segment_plot.png',
                        help='where to write the PNG')

    parser.add_argument('-s', dest='seed', metavar='SEED', type=int,
                        default=None,
                        help='seed for repeatable plants')

    parser.add_argument('-n', dest='jitter', action='store_false',
                        default=True,
                        help='use the preset parameters without variation')

    parser.add_argument('-g', dest='timeline', action='store_true',
                        help='report the growth animation timeline')

    parser.add_argument('-v', dest='verbose', action='count', default=0,
                        help='more logging (repeat for debug)')

    return parser.parse_args(argv)

######################################################################
# main function

def main(argv=None):

    opts = parse_options(argv)

    level = logging.WARNING
    if opts.verbose == 1:
        level = logging.INFO
    elif opts.verbose > 1:
        level = logging.DEBUG

    logging.basicConfig(level=level,
                        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')

    rng = random.Random(opts.seed)

    # time plant generation
    start = datetime.now()

    plant = build_plant(opts.pname, opts.iterations, rng, opts.jitter)

    # print elapsed time
    elapsed = (datetime.now() - start).total_seconds()

    print('generated {} segments and {} nodes from {} symbols in {:.6f} s'.format(
        len(plant.branches), len(plant.nodes),
        plant.stats.final_length, elapsed))

    if opts.timeline:
        scheduler = GrowthScheduler()
        events = scheduler.plan(plant.branches, plant.nodes)
        played = simulate(scheduler)
        print('growth timeline: {} events, {:.3f} s planned, {:.3f} s played'.format(
            len(events), scheduler.total_time(), played))

    if opts.max_segments >= 0 and len(plant.branches) > opts.max_segments:
        print('...maximum of {} segments exceeded, skipping output!'.format(
            opts.max_segments))
        return 0

    segments = segments_array(plant.branches)

    if opts.text_only:
        np.savetxt('segments.txt', segments.reshape(-1, 6))
        print('wrote segments.txt')
    else:
        plot_segments(segments, opts.image_filename,
                      radii=[b.radius for b in plant.branches],
                      nodes=node_positions(plant.nodes),
                      colors=KNOWN_PLANTS[plant.name].colors)

    return 0

if __name__ == '__main__':
    sys.exit(main())
