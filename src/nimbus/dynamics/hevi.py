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
from typing import TYPE_CHECKING

from nimbus.domain.grid import DataType
from nimbus.dwarfs.hyperdiffusion import SpectralHyperdiffusion
from nimbus.dwarfs.positivity_filter import PositivityFilter
from nimbus.dwarfs.rayleigh_damping import RayleighDamping
from nimbus.dynamics.explicit import HorizontalExplicitStage
from nimbus.dynamics.implicit import VerticalImplicitStage
from nimbus.dynamics.workspace import Workspace
from nimbus.framework.base_components import GridComponent
from nimbus.framework.options import HyperdiffusionOptions
from nimbus.utils.exceptions import BufferAliasingError, ConfigurationError
from nimbus.utils.timex import Timer, to_seconds

if TYPE_CHECKING:
    from typing import Optional, Union

    from nimbus.domain.grid import SpectralGrid
    from nimbus.dynamics.tridiagonal import TridiagonalSolver
    from nimbus.framework.options import StorageOptions
    from nimbus.physics.equation_set import EquationSet
    from nimbus.utils.typingx import TimeDelta


class HEVIDynamics(GridComponent):
    """
    Horizontally-explicit vertically-implicit dynamical core on a
    spectral-element grid.

    The outer time stepper drives the core through three entry points,
    each acting on data slots of the grid identified by their index:

        * :meth:`step_explicit` accumulates the horizontal tendencies;
        * :meth:`step_implicit` performs the vertical acoustic solve;
        * :meth:`step_after_subcycle` applies the horizontal
          hyperdiffusion, the tracer positivity filter and, optionally,
          the Rayleigh damping.

    Parameters
    ----------
    grid : SpectralGrid
        The grid.
    equation_set : EquationSet
        The equations being solved. Must be the same as the grid's.
    horizontal_order : int
        Number of collocation points per element and direction.
        Must match the grid's.
    hyperdiffusion_order : `int`, optional
        Either 0 (no diffusion), 2 (Laplacian) or 4 (bi-Laplacian).
        Defaults to 4.
    nu_scalar : `float`, optional
        Diffusion coefficient for the scalar fields.
    nu_div : `float`, optional
        Diffusion coefficient for the divergent modes of the momentum.
    nu_vort : `float`, optional
        Diffusion coefficient for the rotational modes of the momentum.
    nu_instep_div : `float`, optional
        Coefficient of the divergence damping applied within the explicit stage.
    tridiagonal_solver : `str` or `TridiagonalSolver`, optional
        The backend for the vertical solve. Defaults to 'thomas'.
    apply_rayleigh_with_hyperdiffusion : `bool`, optional
        ``True`` to apply the Rayleigh damping at the end of
        :meth:`step_after_subcycle`. Defaults to ``False``.
    rayleigh_cycles : `int`, optional
        Number of sub-steps of the Rayleigh damping. Defaults to 10.
    storage_options : `StorageOptions`, optional
        Storage-related options for the scratch buffers.
    """

    def __init__(
        self,
        grid: SpectralGrid,
        equation_set: EquationSet,
        horizontal_order: int,
        hyperdiffusion_order: int = 4,
        nu_scalar: float = 0.0,
        nu_div: float = 0.0,
        nu_vort: float = 0.0,
        nu_instep_div: float = 0.0,
        *,
        tridiagonal_solver: Union[str, TridiagonalSolver] = "thomas",
        apply_rayleigh_with_hyperdiffusion: bool = False,
        rayleigh_cycles: int = 10,
        storage_options: Optional[StorageOptions] = None,
    ) -> None:
        super().__init__(grid)

        # safety-guard checks
        if equation_set is not grid.equation_set:
            raise ConfigurationError("The equation set must be the one the grid was built with.")
        if horizontal_order != grid.horizontal_order:
            raise ConfigurationError(
                f"Horizontal order {horizontal_order} does not match the grid's "
                f"({grid.horizontal_order})."
            )

        self.hyperdiffusion = HyperdiffusionOptions(
            order=hyperdiffusion_order,
            nu_scalar=nu_scalar,
            nu_div=nu_div,
            nu_vort=nu_vort,
            nu_instep_div=nu_instep_div,
        )
        self.apply_rayleigh_with_hyperdiffusion = apply_rayleigh_with_hyperdiffusion

        # scratch buffers shared by all stages
        self._workspace = Workspace(horizontal_order, grid.nz, storage_options)

        # the stages
        if equation_set.kind == "primitive_nonhydrostatic":
            self._explicit = HorizontalExplicitStage(grid, self._workspace)
            self._implicit = VerticalImplicitStage(
                grid, self._workspace, tridiagonal_solver=tridiagonal_solver
            )
        else:
            self._explicit = None
            self._implicit = None
        self._diffusion = SpectralHyperdiffusion(grid, self._workspace)
        self._filter = PositivityFilter(grid)
        self._rayleigh = RayleighDamping(grid, n_cycles=rayleigh_cycles)

    @property
    def workspace(self) -> Workspace:
        return self._workspace

    @property
    def tridiagonal_solver(self) -> Optional[TridiagonalSolver]:
        return None if self._implicit is None else self._implicit.tridiagonal_solver

    def step_explicit(self, initial: int, update: int, dt: TimeDelta) -> None:
        """Accumulate the horizontal tendencies computed from `initial` into `update`."""
        if self._explicit is None:
            raise ConfigurationError(
                f"No explicit stage for the '{self.equation_set.kind}' equations."
            )

        self._explicit(initial, update, dt)

        nu_instep_div = self.hyperdiffusion.nu_instep_div
        if nu_instep_div > 0.0:
            self._diffusion.vector(
                initial, initial, update, -to_seconds(dt), nu_instep_div, 0.0, False
            )

    def step_implicit(self, initial: int, update: int, dt: TimeDelta) -> None:
        """Solve the vertical acoustic problem built from `initial`, updating `update`."""
        if self._implicit is None:
            raise ConfigurationError(
                f"No implicit stage for the '{self.equation_set.kind}' equations."
            )

        self._implicit(initial, update, dt)

    def step_after_subcycle(self, initial: int, update: int, working: int, dt: TimeDelta) -> None:
        """
        Apply the horizontal hyperdiffusion to `initial`, storing the result in `update`.

        Parameters
        ----------
        initial : int
            Index of the data slot to diffuse.
        update : int
            Index of the data slot receiving the diffused state.
        working : int
            Index of a data slot used as scratch space.
        dt : `float` or `datetime.timedelta`
            The time step.

        Raises
        ------
        BufferAliasingError :
            If any two indices coincide. No data is modified.
        ConfigurationError :
            If the hyperdiffusion order is not supported. No data is modified.
        """
        # safety-guard checks
        if initial == working:
            raise BufferAliasingError("initial", "working", initial)
        if update == working:
            raise BufferAliasingError("working", "update", update)
        if initial == update:
            raise BufferAliasingError("initial", "update", initial)

        hd = self.hyperdiffusion
        if hd.order not in hd.allowed_orders:
            raise ConfigurationError(f"Invalid viscosity order {hd.order}.")

        Timer.start(label="step_after_subcycle")

        dt = to_seconds(dt)
        grid = self.grid

        grid.copy_data(initial, update, DataType.STATE)
        grid.copy_data(initial, update, DataType.TRACERS)

        if hd.is_inviscid or hd.order == 0:
            pass
        elif hd.order == 2:
            self.apply_scalar_hyperdiffusion(initial, update, dt, hd.nu_scalar, False)
            self.apply_vector_hyperdiffusion(
                initial, initial, update, -dt, hd.nu_div, hd.nu_vort, False
            )

            self.filter_negative_tracers(update)

            grid.apply_dss(update, DataType.STATE)
            grid.apply_dss(update, DataType.TRACERS)
        else:
            # undamped Laplacian of the deviation from the reference state
            grid.zero_data(working, DataType.STATE)
            grid.zero_data(working, DataType.TRACERS)
            self.apply_scalar_hyperdiffusion(
                initial, working, 1.0, 1.0, False, remove_ref_state=True
            )
            self.apply_vector_hyperdiffusion(initial, initial, working, 1.0, 1.0, 1.0, False)

            grid.apply_dss(working, DataType.STATE)
            grid.apply_dss(working, DataType.TRACERS)

            # damped Laplacian of the Laplacian
            self.apply_scalar_hyperdiffusion(working, update, -dt, hd.nu_scalar, True)
            self.apply_vector_hyperdiffusion(
                initial, working, update, -dt, hd.nu_div, hd.nu_vort, True
            )

            self.filter_negative_tracers(update)

            grid.apply_dss(update, DataType.STATE)
            grid.apply_dss(update, DataType.TRACERS)

        if self.apply_rayleigh_with_hyperdiffusion and grid.has_rayleigh_friction:
            self.apply_rayleigh_friction(update, dt)

        Timer.stop()

    def apply_scalar_hyperdiffusion(
        self,
        initial: int,
        update: int,
        dt: TimeDelta,
        nu: float,
        scale_nu_locally: bool,
        component: int = -1,
        remove_ref_state: bool = False,
    ) -> None:
        """See :meth:`nimbus.dwarfs.hyperdiffusion.SpectralHyperdiffusion.scalar`."""
        self._diffusion.scalar(
            initial,
            update,
            dt,
            nu,
            scale_nu_locally,
            component=component,
            remove_ref_state=remove_ref_state,
        )

    def apply_vector_hyperdiffusion(
        self,
        initial: int,
        working: int,
        update: int,
        dt: TimeDelta,
        nu_div: float,
        nu_vort: float,
        scale_nu_locally: bool,
    ) -> None:
        """See :meth:`nimbus.dwarfs.hyperdiffusion.SpectralHyperdiffusion.vector`."""
        self._diffusion.vector(initial, working, update, dt, nu_div, nu_vort, scale_nu_locally)

    def filter_negative_tracers(self, update: int) -> None:
        self._filter(update)

    def apply_rayleigh_friction(self, update: int, dt: TimeDelta) -> None:
        self._rayleigh(update, dt)
