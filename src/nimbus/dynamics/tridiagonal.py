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
from __future__ import annotations
import abc
from typing import TYPE_CHECKING

from nimbus.framework.register import factorize

if TYPE_CHECKING:
    from nimbus.utils.typingx import NDArray


class TridiagonalSolver(abc.ABC):
    """
    Abstract base class whose derived classes solve batches of tridiagonal
    systems, one per vertical column.

    All arrays are indexed as (alpha, beta, row). For a system of ``m`` rows:

        * ``a[..., k]``, ``k < m - 1``, is the sub-diagonal entry of row ``k + 1``;
        * ``b[..., k]`` is the diagonal entry of row ``k``;
        * ``c[..., k]``, ``k < m - 1``, is the super-diagonal entry of row ``k``;
        * ``d[..., k]`` is the right-hand side of row ``k``.

    On exit, `d` holds the solution and `a`, `b` and `c` are overwritten.
    `info` receives, per column, zero on success or ``k + 1`` if the
    ``k``-th pivot vanished. Columns with non-zero status hold meaningless
    values.
    """

    registry = {}

    @abc.abstractmethod
    def __call__(self, a: NDArray, b: NDArray, c: NDArray, d: NDArray, info: NDArray) -> None:
        pass

    @staticmethod
    def factory(name: str) -> TridiagonalSolver:
        """
        Parameters
        ----------
        name : str
            The backend. Either:

                * 'thomas' (or 'numpy'): vectorized Thomas algorithm;
                * 'lapack' (or 'scipy'): LAPACK ``?gtsv`` with partial pivoting.

        Return
        ------
        obj :
            Instance of the appropriate derived class.
        """
        import nimbus.dynamics.subclasses.tridiagonal_solvers  # noqa: F401

        return factorize(name, TridiagonalSolver)
