# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

EPSILON: float = 1e-4

# decimal places kept when a value is rounded for display
PRECISION: int = 3


def is_equal(x: float, y: float) -> bool:
    """Return True when x and y differ by less than EPSILON."""
    return y - EPSILON < x < y + EPSILON


def round_to_precision(x: float) -> float:
    """Round x to PRECISION decimal places. Only used for display."""
    return round(float(x), PRECISION)


def permutation_sign(perm: list[int]) -> float:
    """Return +1 or –1 depending on permutation parity."""
    visited = [False] * len(perm)
    cycles = 0
    for i in range(len(perm)):
        if not visited[i]:
            cycles += 1
            j = i
            while not visited[j]:
                visited[j] = True
                j = perm[j]
    swaps = len(perm) - cycles  # n − #cycles
    return -1.0 if swaps & 1 else 1.0
