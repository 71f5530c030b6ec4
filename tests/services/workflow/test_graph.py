"""Tests for the Graph data structure.

TAG: [GRAPH] [TEST]
"""

from planflow.schemas.plan import PlanStage
from planflow.services.workflow.graph import Graph, build_stage_graph


class TestGraphConstruction:
    def test_seeded_nodes_keep_order(self) -> None:
        graph = Graph[str](["c", "a", "b"])

        assert graph.nodes == ["c", "a", "b"]
        assert graph.edge_count == 0

    def test_add_edge_adds_missing_nodes(self) -> None:
        graph = Graph[str]()

        graph.add_edge("route_agent", "bunker_agent")

        assert graph.nodes == ["route_agent", "bunker_agent"]
        assert graph.get_successors("route_agent") == ["bunker_agent"]
        assert graph.get_predecessors("bunker_agent") == ["route_agent"]

    def test_repeated_edge_ignored(self) -> None:
        graph = Graph[str]()

        graph.add_edge("a", "b")
        graph.add_edge("a", "b")

        assert graph.edge_count == 1
        assert graph.get_in_degree("b") == 1

    def test_unknown_node_queries_are_empty(self) -> None:
        graph = Graph[str]()

        assert graph.get_successors("x") == []
        assert graph.get_predecessors("x") == []
        assert graph.get_out_degree("x") == 0
        assert "x" not in graph


class TestGraphQueries:
    def test_is_adjacent_either_direction(self) -> None:
        graph = Graph[str]()
        graph.add_edge("a", "b")

        assert graph.is_adjacent("a", "b") is True
        assert graph.is_adjacent("b", "a") is True
        assert graph.has_edge("b", "a") is False

    def test_edges_grouped_by_source(self) -> None:
        graph = Graph[str](["a", "b", "c"])
        graph.add_edge("b", "c")
        graph.add_edge("a", "c")
        graph.add_edge("a", "b")

        assert graph.edges() == [("a", "c"), ("a", "b"), ("b", "c")]

    def test_subgraph_is_induced(self) -> None:
        graph = Graph[str]()
        graph.add_edge("a", "b")
        graph.add_edge("b", "c")
        graph.add_edge("a", "c")

        sub = graph.subgraph(["c", "a", "z"])

        assert sub.nodes == ["c", "a", "z"]
        assert sub.edges() == [("a", "c")]

    def test_copy_is_independent(self) -> None:
        graph = Graph[str]()
        graph.add_edge("a", "b")

        clone = graph.copy()
        clone.add_edge("b", "c")

        assert graph.edge_count == 1
        assert "c" not in graph
        assert clone.edge_count == 2


class TestBuildStageGraph:
    def test_edges_point_from_dependency_to_dependent(self) -> None:
        stages = [
            PlanStage(stage_id="route", order=1, worker_id="route_agent"),
            PlanStage(stage_id="weather", order=2, worker_id="weather_agent", depends_on=["route"]),
            PlanStage(stage_id="bunker", order=2, worker_id="bunker_agent", depends_on=["route"]),
        ]

        graph = build_stage_graph(stages)

        assert graph.nodes == ["route", "weather", "bunker"]
        assert graph.get_successors("route") == ["weather", "bunker"]

    def test_unknown_dependencies_dropped(self) -> None:
        stages = [PlanStage(stage_id="bunker", order=1, worker_id="bunker_agent", depends_on=["ghost"])]

        graph = build_stage_graph(stages)

        assert graph.nodes == ["bunker"]
        assert graph.edge_count == 0
