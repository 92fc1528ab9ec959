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
import warnings

from nimbus.framework.base_components import GridComponent
from nimbus.utils.timex import Timer


class PositivityFilter(GridComponent):
    """
    Mass-conserving clipping of negative tracer values.

    Within each element, tracer and level, negative values are set to zero
    and positive values are rescaled by the ratio between the total mass and
    the non-negative mass, so that the mass in the element is unchanged.
    Groups whose total mass is negative cannot be made non-negative without
    changing their mass: they are left untouched and reported with a warning.
    """

    def __call__(self, index: int) -> None:
        Timer.start(label="filter_negative_tracers")

        n_degenerate = 0

        for patch in self.grid.patches:
            tracers = patch.get_data_tracers(index)
            if tracers.shape[0] == 0:
                continue

            for _, _, sa, sb in patch.box.elements():
                q = tracers[:, sa, sb, :]
                mass = q * patch.element_area_node[np.newaxis, sa, sb, :]

                total_mass = mass.sum(axis=(1, 2))
                nonnegative_mass = np.where(q >= 0.0, mass, 0.0).sum(axis=(1, 2))
                ratio = np.divide(
                    total_mass,
                    nonnegative_mass,
                    out=np.ones_like(total_mass),
                    where=nonnegative_mass > 0.0,
                )
                degenerate = total_mass < 0.0
                n_degenerate += int(np.count_nonzero(degenerate))

                filtered = np.where(q > 0.0, q * ratio[:, np.newaxis, np.newaxis, :], 0.0)
                q[...] = np.where(degenerate[:, np.newaxis, np.newaxis, :], q, filtered)

        if n_degenerate > 0:
            warnings.warn(
                f"Negative tracer mass in {n_degenerate} element level(s): "
                f"the positivity filter has not been applied there.",
                RuntimeWarning,
            )

        Timer.stop()
