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
"""
Gauss-Lobatto-Legendre (GLL) collocation on the reference element [0, 1],
and the one-dimensional spectral derivative operators built on it.

All operators act on element blocks indexed as (alpha, beta, level).
"""
from __future__ import annotations
import numpy as np
from numpy.polynomial import legendre
from typing import TYPE_CHECKING

from nimbus.utils.exceptions import ConfigurationError

if TYPE_CHECKING:
    from typing import Optional

    from nimbus.utils.typingx import NDArray


def gll_nodes_and_weights(order: int) -> tuple[NDArray, NDArray]:
    """
    Parameters
    ----------
    order : int
        Number of collocation points.

    Return
    ------
    nodes : numpy.ndarray
        The GLL nodes, in increasing order, on [0, 1].
    weights : numpy.ndarray
        The corresponding quadrature weights, summing up to one.
    """
    if order < 2:
        raise ConfigurationError(f"GLL collocation requires at least 2 points, got {order}.")

    n = order - 1
    pn = legendre.Legendre.basis(n)
    interior = np.sort(pn.deriv().roots().real)
    x = np.concatenate(([-1.0], interior, [1.0]))
    w = 2.0 / (n * (n + 1) * pn(x) ** 2)

    return 0.5 * (x + 1.0), 0.5 * w


def lagrange_derivative_matrix(nodes: NDArray) -> NDArray:
    """
    Derivatives of the Lagrange basis built on `nodes`:
    ``dx_basis[s, i]`` is the derivative of the s-th basis function
    evaluated at the i-th node.
    """
    n = nodes.size
    diff = nodes[:, np.newaxis] - nodes[np.newaxis, :]
    np.fill_diagonal(diff, 1.0)
    bary = 1.0 / np.prod(diff, axis=1)

    dx_basis = np.zeros((n, n))
    for s in range(n):
        for i in range(n):
            if i != s:
                dx_basis[s, i] = bary[s] / (bary[i] * (nodes[i] - nodes[s]))
        dx_basis[s, s] = sum(1.0 / (nodes[s] - nodes[m]) for m in range(n) if m != s)

    return dx_basis


def stiffness_matrix(dx_basis: NDArray, weights: NDArray) -> NDArray:
    """``stiffness[i, s] = dx_basis[i, s] * w[s] / w[i]``."""
    return dx_basis * weights[np.newaxis, :] / weights[:, np.newaxis]


class GLLBasis:
    """Nodes, weights and derivative operators of a GLL element of given order."""

    def __init__(self, order: int) -> None:
        self.order = order
        self.nodes, self.weights = gll_nodes_and_weights(order)
        self.dx_basis = lagrange_derivative_matrix(self.nodes)
        self.stiffness = stiffness_matrix(self.dx_basis, self.weights)


def diff_alpha(field: NDArray, dx_basis: NDArray, out: Optional[NDArray] = None) -> NDArray:
    """Strong derivative along alpha: ``sum_s field[s, j, k] * dx_basis[s, i]``."""
    return np.einsum("sjk,si->ijk", field, dx_basis, out=out)


def diff_beta(field: NDArray, dx_basis: NDArray, out: Optional[NDArray] = None) -> NDArray:
    """Strong derivative along beta: ``sum_s field[i, s, k] * dx_basis[s, j]``."""
    return np.einsum("isk,sj->ijk", field, dx_basis, out=out)


def weak_diff_alpha(flux: NDArray, stiffness: NDArray, out: Optional[NDArray] = None) -> NDArray:
    """Weak derivative along alpha: ``-sum_s flux[s, j, k] * stiffness[i, s]``."""
    out = np.einsum("is,sjk->ijk", stiffness, flux, out=out)
    np.negative(out, out=out)
    return out


def weak_diff_beta(flux: NDArray, stiffness: NDArray, out: Optional[NDArray] = None) -> NDArray:
    """Weak derivative along beta: ``-sum_s flux[i, s, k] * stiffness[j, s]``."""
    out = np.einsum("js,isk->ijk", stiffness, flux, out=out)
    np.negative(out, out=out)
    return out
