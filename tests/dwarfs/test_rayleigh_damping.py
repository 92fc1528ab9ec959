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
from datetime import timedelta
import numpy as np
import pytest

from nimbus import (
    DATA_INDEX_REFERENCE,
    ConfigurationError,
    DataLocation,
    DataType,
    RayleighDamping,
    Timer,
)

from tests.utilities import compare_arrays, fill_state, get_snapshot, make_grid


def set_rate(grid, rate):
    for patch in grid.patches:
        for location in DataLocation:
            patch.get_rayleigh_strength(location)[...] = rate


def test_components():
    eqs_3d = make_grid().equation_set
    assert RayleighDamping(make_grid()).components == (
        eqs_3d.UIx,
        eqs_3d.VIx,
        eqs_3d.PIx,
        eqs_3d.WIx,
    )
    assert RayleighDamping(make_grid(cartesian_xz=True)).components == (
        eqs_3d.UIx,
        eqs_3d.PIx,
        eqs_3d.WIx,
    )
    assert RayleighDamping(make_grid(kind="shallow_water")).components == (0, 1, 2)
    assert RayleighDamping(make_grid(kind="advection")).components == ()


@pytest.mark.parametrize("n_cycles", (0, -3))
def test_invalid_cycles(n_cycles):
    with pytest.raises(ConfigurationError):
        RayleighDamping(make_grid(), n_cycles=n_cycles)


def test_no_damping():
    grid = make_grid()
    fill_state(grid, 0)
    grid.zero_data(DATA_INDEX_REFERENCE, DataType.STATE)
    expected = get_snapshot(grid, 0)

    assert not grid.has_rayleigh_friction
    RayleighDamping(grid)(0, 10.0)

    for a, b in zip(get_snapshot(grid, 0), expected):
        assert np.array_equal(a, b)
    assert Timer.get_calls("rayleigh_friction") == 1


def test_sponge_layer():
    grid = make_grid(nz=10, z_top=1e4, rayleigh_depth=3e3, rayleigh_coeff=0.1)
    fill_state(grid, 0, perturbation=0.1)
    grid.zero_data(DATA_INDEX_REFERENCE, DataType.STATE)
    eqs = grid.equation_set
    patch = grid.patches[0]
    before = patch.get_data_state(0, DataLocation.NODE).copy()

    RayleighDamping(grid)(0, timedelta(seconds=5))

    after = patch.get_data_state(0, DataLocation.NODE)

    # below the sponge layer
    assert np.array_equal(after[..., :7], before[..., :7])

    # within the sponge layer
    for c in (eqs.UIx, eqs.VIx, eqs.PIx):
        assert np.all(np.abs(after[c, ..., 7:]) < np.abs(before[c, ..., 7:]))
    assert np.array_equal(after[eqs.RIx], before[eqs.RIx])


@pytest.mark.parametrize("rate", (0.1, 1.0, 10.0))
def test_closed_form(rate):
    grid = make_grid(tracers=1, nz=4)
    fill_state(grid, 0, perturbation=0.1)
    fill_state(grid, DATA_INDEX_REFERENCE, seed=1, perturbation=0.1)
    set_rate(grid, rate)
    eqs = grid.equation_set
    patch = grid.patches[0]

    node = patch.get_data_state(0, DataLocation.NODE)
    redge = patch.get_data_state(0, DataLocation.REDGE)
    node_ref = patch.get_reference_state(DataLocation.NODE)
    redge_ref = patch.get_reference_state(DataLocation.REDGE)
    node_before = node.copy()
    redge_before = redge.copy()
    tracers_before = patch.get_data_tracers(0).copy()

    RayleighDamping(grid)(0, 1.0)

    w = (1.0 / (1.0 + rate / 10)) ** 10
    for c in (eqs.UIx, eqs.VIx, eqs.PIx):
        compare_arrays(node[c], w * node_before[c] + (1.0 - w) * node_ref[c], atol=1e-12, rtol=1e-12)
    compare_arrays(
        redge[eqs.WIx],
        w * redge_before[eqs.WIx] + (1.0 - w) * redge_ref[eqs.WIx],
        atol=1e-12,
        rtol=1e-12,
    )
    assert np.array_equal(node[eqs.RIx], node_before[eqs.RIx])
    assert np.array_equal(patch.get_data_tracers(0), tracers_before)


def test_n_cycles():
    grid = make_grid(nz=2)
    fill_state(grid, 0, perturbation=0.1)
    grid.zero_data(DATA_INDEX_REFERENCE, DataType.STATE)
    set_rate(grid, 1.0)
    eqs = grid.equation_set
    node = grid.patches[0].get_data_state(0, DataLocation.NODE)
    before = node[eqs.UIx].copy()

    damping = RayleighDamping(grid, n_cycles=1)
    assert damping.n_cycles == 1
    damping(0, 2.0)

    compare_arrays(node[eqs.UIx], before / 3.0, atol=1e-14, rtol=1e-14)


def test_halo_untouched():
    grid = make_grid(halo_width=2)
    fill_state(grid, 0, perturbation=0.1)
    grid.zero_data(DATA_INDEX_REFERENCE, DataType.STATE)
    set_rate(grid, 1.0)
    patch = grid.patches[0]
    before = patch.get_data_state(0, DataLocation.NODE).copy()

    RayleighDamping(grid)(0, 1.0)

    after = patch.get_data_state(0, DataLocation.NODE)
    assert np.array_equal(after[:, :2], before[:, :2])
    assert np.array_equal(after[:, -2:], before[:, -2:])
    assert np.array_equal(after[:, :, :2], before[:, :, :2])
    assert np.array_equal(after[:, :, -2:], before[:, :, -2:])

    ia, ib = patch.box.a_interior, patch.box.b_interior
    assert not np.array_equal(after[:, ia, ib], before[:, ia, ib])


if __name__ == "__main__":
    pytest.main([__file__])
