import io
import base64
from typing import Dict, Any, List, Optional, Tuple

import matplotlib.pyplot as plt
import matplotlib.patches as mpatches
import networkx as nx
import plotly.graph_objects as go

import streamlit as st
from .models import EMPTY, Network


def _network_graph(network: Network) -> nx.DiGraph:
    G = nx.DiGraph()
    for order, event in enumerate(network.events):
        G.add_node(event, order=order)
    for (source, destination), label in network.iter_arcs():
        G.add_edge(source, destination, task=label, empty=label is EMPTY)
    return G


def _chain_layout(network: Network, G: nx.DiGraph) -> Dict[Any, Tuple[float, float]]:
    """Events left to right in chain order, fanned out vertically by in-degree."""
    pos = {}
    for order, event in enumerate(network.events):
        lane = G.in_degree(event) if G.has_node(event) else 0
        offset = ((lane % 3) - 1) * 0.6 if 0 < order < len(network.events) - 1 else 0.0
        pos[event] = (float(order), offset)
    return pos


def _critical_links(critical_path: Optional[List[Any]]) -> set:
    if not critical_path:
        return set()
    return set(zip(critical_path, critical_path[1:]))


@st.cache_resource(show_spinner="Generating Network Diagram...")
def create_network_diagram(
    network_data: Dict[str, Any], critical_path: Optional[List[Any]], theme: Dict[str, Any]
) -> plt.Figure:
    """
    Create an activity-on-arc diagram using NetworkX and Matplotlib.
    Expects network_data from Network.to_dict() for caching compatibility.
    """
    network = Network.from_dict(network_data)

    if not network.events:
        fig, ax = plt.subplots(figsize=(10, 6))
        ax.text(0.5, 0.5, 'No events to display', ha='center', va='center', fontsize=14)
        ax.axis('off')
        return fig

    G = _network_graph(network)
    pos = _chain_layout(network, G)
    critical = _critical_links(critical_path)
    critical_nodes = set(critical_path or [])

    num_nodes = len(G.nodes())
    fig, ax = plt.subplots(figsize=(max(12, int(num_nodes * 1.4)), 6))

    for u, v, data in G.edges(data=True):
        is_critical = (u, v) in critical
        if is_critical:
            color = theme["critical"]
        elif data["empty"]:
            color = theme["edge_empty"]
        else:
            color = theme["edge_task"]
        nx.draw_networkx_edges(G, pos, edgelist=[(u, v)],
                               edge_color=color, style='dashed' if data["empty"] else 'solid',
                               arrows=True, arrowsize=20,
                               connectionstyle="arc3,rad=0.25",
                               ax=ax, width=3 if is_critical else 2)

    edge_labels = {(u, v): str(d["task"]) for u, v, d in G.edges(data=True) if not d["empty"]}
    nx.draw_networkx_edge_labels(G, pos, edge_labels, font_size=9, ax=ax)

    nx.draw_networkx_nodes(G, pos, nodelist=[n for n in G.nodes() if n not in critical_nodes],
                           node_color=theme["node_noncrit"], node_size=900, ax=ax)
    nx.draw_networkx_nodes(G, pos, nodelist=[n for n in G.nodes() if n in critical_nodes],
                           node_color=theme["node_crit"], node_size=900, ax=ax,
                           edgecolors=theme["critical"], linewidths=3)
    nx.draw_networkx_labels(G, pos, {n: str(n) for n in G.nodes()}, font_size=10, ax=ax)

    legend_elements = [
        mpatches.Patch(color=theme["node_crit"], label='Critical Event'),
        mpatches.Patch(color=theme["node_noncrit"], label='Event'),
        plt.Line2D([0], [0], color=theme["edge_task"], linewidth=2, linestyle='solid', label='Task Arc'),
        plt.Line2D([0], [0], color=theme["edge_empty"], linewidth=2, linestyle='dashed', label='Empty Arc'),
        plt.Line2D([0], [0], color=theme["critical"], linewidth=3, linestyle='solid', label='Critical Path'),
    ]
    ax.legend(handles=legend_elements, loc='upper left', bbox_to_anchor=(1.02, 1), fontsize=8, facecolor='white', frameon=True)
    ax.set_title('Project Network Diagram (Activity on Arc)', fontsize=14, fontweight='bold')
    ax.axis('off')
    plt.tight_layout()
    return fig


@st.cache_data(show_spinner="Generating Interactive Network...")
def create_plotly_network(
    network_data: Dict[str, Any], critical_path: Optional[List[Any]], theme: Dict[str, Any]
) -> go.Figure:
    """
    Create an interactive activity-on-arc diagram using Plotly.
    """
    network = Network.from_dict(network_data)
    if not network.events:
        fig = go.Figure()
        fig.add_annotation(text="No events to display", x=0.5, y=0.5, showarrow=False)
        fig.update_layout(height=400)
        return fig

    G = _network_graph(network)
    pos = _chain_layout(network, G)
    critical = _critical_links(critical_path)

    traces = []
    label_x, label_y, label_text = [], [], []
    for u, v, data in G.edges(data=True):
        x0, y0 = pos[u]
        x1, y1 = pos[v]
        is_critical = (u, v) in critical
        if is_critical:
            color = theme["critical"]
        elif data["empty"]:
            color = theme["edge_empty"]
        else:
            color = theme["edge_task"]
        traces.append(
            go.Scatter(
                x=[x0, x1], y=[y0, y1], mode="lines", hoverinfo="none",
                line=dict(width=3 if is_critical else 1.5, color=color, dash="dash" if data["empty"] else "solid"),
            )
        )
        if not data["empty"]:
            label_x.append((x0 + x1) / 2)
            label_y.append((y0 + y1) / 2)
            label_text.append(str(data["task"]))

    traces.append(
        go.Scatter(x=label_x, y=label_y, mode="text", text=label_text,
                   textfont=dict(color=theme["ink"]), hoverinfo="text",
                   hovertext=[f"Task {t}" for t in label_text])
    )

    critical_nodes = set(critical_path or [])
    node_x = [pos[n][0] for n in G.nodes()]
    node_y = [pos[n][1] for n in G.nodes()]
    node_color = [theme["critical"] if n in critical_nodes else theme["noncritical"] for n in G.nodes()]
    node_text = [
        f"Event {n}<br>In: {G.in_degree(n)} Out: {G.out_degree(n)}" for n in G.nodes()
    ]
    traces.append(
        go.Scatter(
            x=node_x, y=node_y, mode="markers+text", text=[str(n) for n in G.nodes()],
            textposition="bottom center", hovertext=node_text, hoverinfo="text",
            marker=dict(size=22, color=node_color, line=dict(width=2, color=theme["surface2"])),
        )
    )

    fig = go.Figure(data=traces)
    fig.update_layout(
        title="Interactive Network Diagram", showlegend=False, height=500, margin=dict(l=20, r=20, t=40, b=20),
        xaxis=dict(showgrid=False, zeroline=False, showticklabels=False),
        yaxis=dict(showgrid=False, zeroline=False, showticklabels=False),
        template="plotly_white",
        paper_bgcolor=theme["surface"],
        plot_bgcolor=theme["surface"],
        font=dict(color=theme["ink"], family="Space Grotesk"),
    )
    return fig


def fig_to_base64(fig: plt.Figure) -> str:
    buffer = io.BytesIO()
    fig.savefig(buffer, format="png", dpi=180, bbox_inches="tight")
    buffer.seek(0)
    encoded = base64.b64encode(buffer.read()).decode("utf-8")
    buffer.close()
    return encoded
