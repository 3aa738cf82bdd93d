"""Flame-graph projection for perfxray call forests."""

from perfxray.flame_graph.handler_flame_projection import (
    percentage_of_root,
    project_flame_graph,
)

__all__ = ["percentage_of_root", "project_flame_graph"]
