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
from dataclasses import dataclass, field
import datetime as dt
import functools
from sympl import DataArray
import timeit
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from typing import Optional

    from nimbus.utils.typingx import TimeDelta


def to_seconds(timestep: TimeDelta, units: str = "s") -> float:
    """
    Express a time step as a raw float.

    Parameters
    ----------
    timestep : `float` or `datetime.timedelta`
        The time step. Plain numbers are assumed to be given in `units`.
    units : `str`, optional
        The units of plain-number time steps. Defaults to seconds.

    Return
    ------
    float :
        The time step in seconds.
    """
    if isinstance(timestep, dt.timedelta):
        return timestep.total_seconds()
    if units == "s":
        return float(timestep)
    return DataArray(float(timestep), attrs={"units": units}).to_units("s").values.item()


def get_time_string(seconds, print_milliseconds=False):
    """Convert seconds into a string of the form hours:minutes:seconds[.milliseconds]."""
    hours = int(seconds / 3600)
    remainder = seconds - hours * 3600
    minutes = int(remainder / 60)
    remainder -= minutes * 60

    s = f"{hours:02d}:{minutes:02d}:{int(remainder):02d}"
    if print_milliseconds:
        s += f".{int(1000 * (remainder - int(remainder))):03d}"

    return s


@dataclass
class Node:
    label: str
    parent: Node = None
    children: dict[str, Node] = field(default_factory=dict)
    level: int = 0
    tic: float = 0
    total_calls: int = 0
    total_runtime: float = 0


class Timer:
    """Nested wall-clock timers, keyed by label and organized as a tree."""

    active: list[str] = []
    head: Optional[Node] = None
    tree: dict[str, Node] = {}

    @classmethod
    def start(cls, label: str) -> None:
        # safe-guard
        if label in cls.active:
            return

        # mark node as active
        cls.active.append(label)

        # insert timer in the tree
        node_label = cls.active[0]
        node = cls.tree.setdefault(node_label, Node(node_label))
        for i, node_label in enumerate(cls.active[1:]):
            node = node.children.setdefault(node_label, Node(node_label, parent=node, level=i + 1))
        cls.head = node

        cls.head.tic = timeit.default_timer()

    @classmethod
    def stop(cls, label: Optional[str] = None) -> None:
        # safe-guard
        if len(cls.active) == 0:
            return

        # only nested timers allowed!
        label = label or cls.active[-1]
        assert label == cls.active[-1], f"Cannot stop {label} before stopping {cls.active[-1]}"

        toc = timeit.default_timer()

        cls.head.total_calls += 1
        cls.head.total_runtime += toc - cls.head.tic

        cls.active = cls.active[:-1]
        cls.head = cls.head.parent

    @classmethod
    def reset(cls) -> None:
        cls.active = []
        cls.head = None

        def cb(node):
            node.total_calls = 0
            node.total_runtime = 0

        for root in cls.tree.values():
            cls.traverse(cb, root)

    @classmethod
    def get_calls(cls, label: str) -> int:
        nodes = cls.get_nodes_from_label(label)
        assert len(nodes) > 0, f"{label} is not a valid timer identifier."
        return sum(node.total_calls for node in nodes)

    @classmethod
    def get_time(cls, label: str, units: str = "ms") -> float:
        nodes = cls.get_nodes_from_label(label)
        assert len(nodes) > 0, f"{label} is not a valid timer identifier."

        raw_time = functools.reduce(lambda x, node: x + node.total_runtime, nodes, 0)
        return DataArray(raw_time, attrs={"units": "s"}).to_units(units).values.item()

    @classmethod
    def log(cls, logfile: str = "log.txt", units: str = "ms") -> None:
        # ensure all timers have been stopped
        assert len(cls.active) == 0, "Some timers are still running."

        def cb(node, out, units, prefix="", has_peers=False):
            level = node.level
            prefix_now = prefix + "|- " if level > 0 else prefix
            time = DataArray(node.total_runtime, attrs={"units": "s"}).to_units(units).values.item()
            out.write(f"{prefix_now}{node.label}: {time:.3f} {units}\n")

            prefix_new = prefix if level == 0 else prefix + "|  " if has_peers else prefix + "   "
            peers_new = len(node.children)
            for i, child in enumerate(node.children.values()):
                cb(
                    child,
                    out,
                    units,
                    prefix=prefix_new,
                    has_peers=peers_new > 0 and i < peers_new - 1,
                )

        with open(logfile, "w") as outfile:
            for root in cls.tree.values():
                cb(root, outfile, units)

    @staticmethod
    def traverse(cb, node, **kwargs) -> None:
        cb(node, **kwargs)
        for child in node.children.values():
            Timer.traverse(cb, child, **kwargs)

    @classmethod
    def get_nodes_from_label(cls, label) -> list[Node]:
        out = []

        def cb(node, out):
            if node.label == label:
                out.append(node)

        for root in cls.tree.values():
            Timer.traverse(cb, root, out=out)

        return out
