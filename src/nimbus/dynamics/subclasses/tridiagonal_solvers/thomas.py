# -*- coding: utf-8 -*-
#
# Nimbus
#
# Copyright (c) 2018-2024, ETH Zurich
# All rights reserved.
#
# This file is part of the Nimbus project. Nimbus is free software:
# you can redistribute it and/or modify it under the terms of the
# GNU General Public License as published by the Free Software Foundation,
# either version 3 of the License, or any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program.  If not, see <http://www.gnu.org/licenses/>.
#
# SPDX-License-Identifier: GPL-3.0-or-later
#
import numpy as np

from nimbus.dynamics.tridiagonal import TridiagonalSolver
from nimbus.framework.register import register


@register(name=("thomas", "numpy"))
class Thomas(TridiagonalSolver):
    """The Thomas algorithm, vectorized over the columns.

    No pivoting is performed: a vanishing pivot is reported as a failure.
    """

    def __call__(self, a, b, c, d, info):
        m = b.shape[-1]
        info[...] = 0

        with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
            # forward elimination
            for k in range(1, m):
                self._check_pivot(b[..., k - 1], k, info)
                w = np.where(b[..., k - 1] != 0.0, a[..., k - 1] / b[..., k - 1], 0.0)
                b[..., k] -= w * c[..., k - 1]
                d[..., k] -= w * d[..., k - 1]
            self._check_pivot(b[..., m - 1], m, info)

            # backward substitution
            d[..., m - 1] = np.where(b[..., m - 1] != 0.0, d[..., m - 1] / b[..., m - 1], 0.0)
            for k in range(m - 2, -1, -1):
                d[..., k] = np.where(
                    b[..., k] != 0.0, (d[..., k] - c[..., k] * d[..., k + 1]) / b[..., k], 0.0
                )

    @staticmethod
    def _check_pivot(pivot, row, info):
        failed = ((pivot == 0.0) | ~np.isfinite(pivot)) & (info == 0)
        info[failed] = row
