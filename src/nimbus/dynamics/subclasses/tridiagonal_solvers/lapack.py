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
from scipy.linalg import get_lapack_funcs

from nimbus.dynamics.tridiagonal import TridiagonalSolver
from nimbus.framework.register import register


@register(name=("lapack", "scipy"))
class Lapack(TridiagonalSolver):
    """LAPACK ``?gtsv`` (Gaussian elimination with partial pivoting), one call per column."""

    def __call__(self, a, b, c, d, info):
        (gtsv,) = get_lapack_funcs(("gtsv",), (b, d))

        for idx in np.ndindex(info.shape):
            *_, x, status = gtsv(a[idx][:-1], b[idx], c[idx][:-1], d[idx][:, np.newaxis])
            info[idx] = status
            if status == 0:
                d[idx] = np.ravel(x)
