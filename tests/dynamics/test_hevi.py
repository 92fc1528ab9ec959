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
import math
import numpy as np
import pytest

from nimbus import (
    DATA_INDEX_REFERENCE,
    BufferAliasingError,
    ConfigurationError,
    DataLocation,
    DataType,
    EquationSet,
    HEVIDynamics,
    PreconditionViolation,
    Timer,
    TridiagonalSolver,
)

from tests.utilities import (
    compare_arrays,
    compare_snapshots,
    fill_state,
    get_node_coordinates,
    get_snapshot,
    make_grid,
)


def get_dycore(grid, **kwargs):
    return HEVIDynamics(grid, grid.equation_set, grid.horizontal_order, **kwargs)


def assert_continuous(grid, index):
    snapshot = get_snapshot(grid, index)
    grid.apply_dss(index, DataType.STATE)
    grid.apply_dss(index, DataType.TRACERS)
    compare_snapshots(get_snapshot(grid, index), snapshot, atol=1e-12, rtol=1e-12)


def test_properties():
    grid = make_grid()
    dycore = get_dycore(grid, nu_scalar=1.0, tridiagonal_solver="lapack")

    assert dycore.grid is grid
    assert dycore.equation_set is grid.equation_set
    assert dycore.hyperdiffusion.order == 4
    assert dycore.hyperdiffusion.nu_scalar == 1.0
    assert not dycore.apply_rayleigh_with_hyperdiffusion
    assert isinstance(dycore.tridiagonal_solver, TridiagonalSolver)
    assert dycore.workspace.horizontal_order == grid.horizontal_order
    assert dycore.workspace.nz == grid.nz


def test_invalid_arguments():
    grid = make_grid(order=4)
    eqs = grid.equation_set

    with pytest.raises(ConfigurationError):
        HEVIDynamics(grid, eqs, 5)
    with pytest.raises(ConfigurationError):
        HEVIDynamics(grid, EquationSet("primitive_nonhydrostatic", tracers=2), 4)
    with pytest.raises(ConfigurationError):
        HEVIDynamics(object(), eqs, 4)
    with pytest.raises(ConfigurationError):
        get_dycore(grid, hyperdiffusion_order=3)
    with pytest.raises(ConfigurationError):
        get_dycore(grid, nu_div=-1.0)
    with pytest.raises(ConfigurationError):
        get_dycore(grid, tridiagonal_solver="cyclic_reduction")
    with pytest.raises(ConfigurationError):
        get_dycore(grid, rayleigh_cycles=0)


@pytest.mark.parametrize("order", (0, 2, 4))
def test_inviscid(order):
    grid = make_grid()
    fill_state(grid, 0)
    fill_state(grid, 1, seed=1)
    expected = get_snapshot(grid, 0)

    # with order zero, the coefficients are ignored
    nu = 1e3 if order == 0 else 0.0
    dycore = get_dycore(grid, hyperdiffusion_order=order, nu_scalar=nu, nu_div=nu)
    dycore.step_after_subcycle(0, 1, 2, 10.0)

    compare_snapshots(get_snapshot(grid, 1), expected)
    compare_snapshots(get_snapshot(grid, 0), expected)
    assert Timer.get_calls("step_after_subcycle") == 1


@pytest.mark.parametrize("indices", ((0, 0, 1), (0, 1, 1), (0, 1, 0)))
def test_aliasing(indices):
    grid = make_grid()
    fill_state(grid, 0)
    fill_state(grid, 1, seed=1)
    snapshots = [get_snapshot(grid, i) for i in grid.data_indices]

    dycore = get_dycore(grid, hyperdiffusion_order=2, nu_scalar=1e3, nu_div=1e3, nu_vort=1e3)
    with pytest.raises(BufferAliasingError) as excinfo:
        dycore.step_after_subcycle(indices[0], indices[1], indices[2], 1.0)
    assert isinstance(excinfo.value, PreconditionViolation)

    for i, snapshot in zip(grid.data_indices, snapshots):
        compare_snapshots(get_snapshot(grid, i), snapshot)


def test_order_changed_after_construction():
    grid = make_grid()
    fill_state(grid, 0)
    snapshots = [get_snapshot(grid, i) for i in grid.data_indices]

    dycore = get_dycore(grid, hyperdiffusion_order=2, nu_scalar=1e3)
    dycore.hyperdiffusion.order = 3
    with pytest.raises(ConfigurationError):
        dycore.step_after_subcycle(0, 1, 2, 1.0)

    for i, snapshot in zip(grid.data_indices, snapshots):
        compare_snapshots(get_snapshot(grid, i), snapshot)


@pytest.mark.parametrize("order", (2, 4))
def test_hyperdiffusion(order):
    grid = make_grid(tracers=2, nx=3, ny=2, order=4)
    fill_state(grid, 0, perturbation=0.1)
    grid.zero_data(3, DataType.STATE)
    initial = get_snapshot(grid, 0)

    nu = 1e5 if order == 2 else 1e12
    dycore = get_dycore(
        grid, hyperdiffusion_order=order, nu_scalar=nu, nu_div=nu, nu_vort=nu
    )
    dycore.step_after_subcycle(0, 1, 3, timedelta(seconds=10))

    # the initial data is left untouched
    compare_snapshots(get_snapshot(grid, 0), initial)

    patch = grid.patches[0]
    node = patch.get_data_state(1, DataLocation.NODE)
    assert np.all(np.isfinite(node))
    assert np.all(patch.get_data_tracers(1) >= 0.0)
    assert not np.array_equal(node, initial[0])
    assert_continuous(grid, 1)

    assert Timer.get_calls("filter_negative_tracers") == 1
    assert Timer.get_calls("hyperdiffusion") == (2 if order == 2 else 4)


def test_perturbation_damped():
    grid = make_grid(tracers=0, nx=3, ny=3, order=4)
    fill_state(grid, 0, perturbation=0.1)
    fill_state(grid, 1, perturbation=0.0)
    eqs = grid.equation_set
    pix = eqs.PIx

    dycore = get_dycore(grid, hyperdiffusion_order=2, nu_scalar=1e5)
    dycore.step_after_subcycle(0, 2, 3, 10.0)

    node_0 = grid.patches[0].get_data_state(0, DataLocation.NODE)
    node_2 = grid.patches[0].get_data_state(2, DataLocation.NODE)
    base = grid.patches[0].get_data_state(1, DataLocation.NODE)
    assert np.std(node_2[pix] - base[pix]) < np.std(node_0[pix] - base[pix])


def set_sine_state(grid, index, x_length):
    """Fill a data slot with fields varying as a single sine wave along x."""
    eqs = grid.equation_set
    patch = grid.patches[0]
    x, _ = get_node_coordinates(grid, patch)
    k = 2.0 * math.pi / x_length
    psi = np.sin(k * x)[:, np.newaxis, np.newaxis] * np.ones_like(patch.z_levels)

    node = patch.get_data_state(index, DataLocation.NODE)
    node[...] = 0.0
    node[eqs.RIx] = 1.0
    node[eqs.PIx] = 300.0 + psi
    node[eqs.UIx] = psi
    patch.get_data_state(index, DataLocation.REDGE)[...] = 0.0

    return k, psi


def test_biharmonic_sine():
    x_length = 1e4
    grid = make_grid(tracers=1, nx=8, ny=1, nz=2, order=6, x_length=x_length, y_length=1e3)
    eqs = grid.equation_set
    patch = grid.patches[0]
    k, psi = set_sine_state(grid, 0, x_length)
    patch.get_data_tracers(0)[0] = 0.5 + 0.25 * psi

    dt, nu = 1.0, 1e10
    dycore = get_dycore(grid, hyperdiffusion_order=4, nu_scalar=nu, nu_div=nu, nu_vort=nu)
    dycore.step_after_subcycle(0, 1, 2, dt)

    factor = -dt * nu * k**4
    before = patch.get_data_state(0, DataLocation.NODE)
    after = patch.get_data_state(1, DataLocation.NODE)
    amplitude = abs(factor)

    compare_arrays(after[eqs.PIx] - before[eqs.PIx], factor * psi, atol=1e-2 * amplitude, rtol=0)
    compare_arrays(after[eqs.UIx] - before[eqs.UIx], factor * psi, atol=1e-1 * amplitude, rtol=0)
    compare_arrays(after[eqs.VIx], 0.0, atol=1e-2 * amplitude, rtol=0)
    compare_arrays(after[eqs.RIx] - before[eqs.RIx], 0.0, atol=1e-2 * amplitude, rtol=0)
    compare_arrays(
        patch.get_data_tracers(1)[0] - patch.get_data_tracers(0)[0],
        0.25 * factor * psi,
        atol=1e-2 * amplitude,
        rtol=0,
    )


def test_biharmonic_reference_state():
    x_length = 1e4
    grid = make_grid(tracers=1, nx=8, ny=1, nz=2, order=6, x_length=x_length, y_length=1e3)
    set_sine_state(grid, 0, x_length)
    eqs = grid.equation_set
    patch = grid.patches[0]

    # a still atmosphere equal to a horizontally varying reference state
    patch.get_data_state(0, DataLocation.NODE)[eqs.UIx] = 0.0
    grid.copy_data(0, DATA_INDEX_REFERENCE, DataType.STATE)
    expected = get_snapshot(grid, 0)

    dycore = get_dycore(grid, hyperdiffusion_order=4, nu_scalar=1e10, nu_div=1e10, nu_vort=1e10)
    dycore.step_after_subcycle(0, 1, 2, 1.0)

    compare_snapshots(get_snapshot(grid, 1), expected, atol=1e-10, rtol=0)


def test_rayleigh_damping():
    grid = make_grid(rayleigh_depth=3e3, rayleigh_coeff=0.05)
    fill_state(grid, 0)

    damped = get_dycore(grid, hyperdiffusion_order=0, apply_rayleigh_with_hyperdiffusion=True)
    damped.step_after_subcycle(0, 1, 2, 10.0)
    assert Timer.get_calls("rayleigh_friction") == 1
    assert not np.array_equal(
        grid.patches[0].get_data_state(1, DataLocation.NODE),
        grid.patches[0].get_data_state(0, DataLocation.NODE),
    )

    # disabled by default
    get_dycore(grid, hyperdiffusion_order=0).step_after_subcycle(0, 1, 2, 10.0)
    assert Timer.get_calls("rayleigh_friction") == 1
    compare_snapshots(get_snapshot(grid, 1), get_snapshot(grid, 0))

    damped.apply_rayleigh_friction(0, 10.0)
    assert Timer.get_calls("rayleigh_friction") == 2


def test_instep_divergence_damping():
    grid = make_grid()
    fill_state(grid, 0, perturbation=0.1)
    grid.copy_data(0, 1, DataType.STATE)
    grid.copy_data(0, 2, DataType.STATE)

    get_dycore(grid, nu_instep_div=1e4).step_explicit(0, 2, 1.0)
    assert Timer.get_calls("hyperdiffusion") == 1

    get_dycore(grid).step_explicit(0, 1, 1.0)
    assert Timer.get_calls("hyperdiffusion") == 1

    eqs = grid.equation_set
    node_1 = grid.patches[0].get_data_state(1, DataLocation.NODE)
    node_2 = grid.patches[0].get_data_state(2, DataLocation.NODE)
    assert not np.array_equal(node_1[eqs.UIx], node_2[eqs.UIx])
    for c in (eqs.PIx, eqs.RIx):
        assert np.array_equal(node_1[c], node_2[c])


def test_shallow_water():
    grid = make_grid(kind="shallow_water", tracers=1)
    fill_state(grid, 0, perturbation=0.1)

    dycore = get_dycore(grid, hyperdiffusion_order=4, nu_scalar=1e12, nu_div=1e12)
    assert dycore.tridiagonal_solver is None

    with pytest.raises(ConfigurationError):
        dycore.step_explicit(0, 1, 1.0)
    with pytest.raises(ConfigurationError):
        dycore.step_implicit(0, 1, 1.0)

    dycore.step_after_subcycle(0, 1, 2, 1.0)
    assert np.all(np.isfinite(grid.patches[0].get_data_state(1, DataLocation.NODE)))
    assert_continuous(grid, 1)


@pytest.mark.parametrize("solver", ("thomas", "lapack"))
def test_full_step(solver):
    grid = make_grid(tracers=1, nx=2, ny=2, nz=8, order=4, halo_width=1)
    fill_state(grid, 0)
    dt = timedelta(seconds=1)

    dycore = get_dycore(
        grid,
        hyperdiffusion_order=4,
        nu_scalar=1e10,
        nu_div=1e10,
        nu_vort=1e10,
        nu_instep_div=1e3,
        tridiagonal_solver=solver,
    )

    grid.copy_data(0, 1, DataType.STATE)
    grid.copy_data(0, 1, DataType.TRACERS)
    dycore.step_explicit(0, 1, dt)

    grid.copy_data(1, 2, DataType.STATE)
    grid.copy_data(1, 2, DataType.TRACERS)
    dycore.step_implicit(1, 2, dt)

    dycore.step_after_subcycle(2, 3, 0, dt)

    patch = grid.patches[0]
    ia, ib = patch.box.a_interior, patch.box.b_interior
    for location in DataLocation:
        assert np.all(np.isfinite(patch.get_data_state(3, location)[:, ia, ib]))
    w = patch.get_data_state(3, DataLocation.REDGE)[grid.equation_set.WIx, ia, ib]
    assert np.all(w[..., 0] == 0.0)

    for label in ("step_explicit", "step_implicit", "step_after_subcycle"):
        assert Timer.get_calls(label) == 1


if __name__ == "__main__":
    pytest.main([__file__])
