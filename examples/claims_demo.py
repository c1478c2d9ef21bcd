#!/usr/bin/env python3
"""
Demo script: partition a terrain map into states and print the result.

Without --map a small built-in island map is used.
"""

import argparse

from py_realms.core import GenerationOptions, StateAssembler, load_terrain_csv, parse_terrain_text
from py_realms.core.statistics import log_state_statistics, ownership_matrix

DEMO_MAP = """\
M,M,M,M,M,M,M,M,M,M,M,M,M,M,M,M,M,M,M,M
M,T,T,T,T,T,T,M,M,M,M,M,T,T,T,T,T,T,T,M
M,T,T,T,T,T,T,T,M,M,M,T,T,T,T,T,T,T,T,M
M,T,T,T,T,T,T,T,T,M,T,T,T,T,T,T,T,T,T,M
M,T,T,T,T,T,T,T,T,T,T,T,T,T,T,T,T,T,T,M
M,T,T,T,T,T,T,T,T,T,T,T,T,T,T,T,T,T,M,M
M,M,T,T,T,T,T,T,T,T,T,T,T,T,T,T,T,T,M,M
M,M,T,T,T,T,T,M,M,T,T,T,T,T,T,T,T,T,M,M
M,M,T,T,T,T,M,M,M,M,T,T,T,T,T,T,T,M,M,M
M,M,M,T,T,T,M,M,M,M,M,T,T,T,T,T,M,M,M,M
M,M,M,T,T,T,T,M,M,M,M,T,T,T,T,T,M,M,M,M
M,M,T,T,T,T,T,T,M,M,T,T,T,T,T,T,T,M,M,M
M,T,T,T,T,T,T,T,T,T,T,T,T,T,T,T,T,T,M,M
M,T,T,T,T,T,T,T,T,T,T,T,T,T,T,T,T,T,T,M
M,M,M,M,M,M,M,M,M,M,M,M,M,M,M,M,M,M,M,M
"""


def main():
    parser = argparse.ArgumentParser(description="Generate states on a terrain map")
    parser.add_argument("--map", help="Terrain CSV of T/M codes")
    parser.add_argument("--states", type=int, default=4, help="Number of states")
    parser.add_argument("--seed", default="demo", help="Random seed")
    parser.add_argument("--delimiter", default=",", help="CSV delimiter")
    args = parser.parse_args()

    if args.map:
        grid = load_terrain_csv(args.map, delimiter=args.delimiter)
    else:
        grid = parse_terrain_text(DEMO_MAP)

    print("Py-Realms State Generation Demo")
    print("=" * 40)
    print(f"Grid {grid.rows}x{grid.cols}, {grid.land_count} land cells")

    assembler = StateAssembler(grid, prng=args.seed, options=GenerationOptions())
    result = assembler.generate(args.states)
    summaries = log_state_statistics(result, grid)

    print(f"\nCommitted {result.committed} of {result.requested} states")
    for summary in summaries:
        print(
            f"  {summary.name}: {summary.regions} regions, {summary.cells} cells "
            f"({summary.water_cells} water), capital {summary.capital}"
        )
    if result.failures:
        print(f"Attempt failures: {result.failures}")

    # One character per cell: '.' water, '#' unowned land, letters for states
    owners = ownership_matrix(grid)
    print()
    for row in range(grid.rows):
        line = []
        for col in range(grid.cols):
            owner = owners[row, col]
            if owner:
                line.append(chr(ord("A") + (owner - 1) % 26))
            else:
                line.append("#" if grid.land[row, col] else ".")
        print("".join(line))


if __name__ == "__main__":
    main()
