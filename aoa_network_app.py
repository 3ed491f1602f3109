"""
Activity-on-Arc Network Studio
==============================
Builds an activity-on-arc event network from an ordered task list,
simplifies it by removing redundant events and dependency arcs, and finds
the critical path using each task's maximum duration.

Run with:
    streamlit run aoa_network_app.py
"""

import logging

import streamlit as st
import pandas as pd
import matplotlib.pyplot as plt

from aoanet.engine import AOAScheduler
from aoanet.simplifier import LoopPolicy
from aoanet.ui_components import build_report_html, compute_network_stats, import_tasks_from_dataframe
from aoanet.ui_styles import EVENT_DOMAIN_LABELS, LOOP_POLICY_LABELS, THEMES, get_active_theme, get_theme_css
from aoanet.visualizations import create_network_diagram, create_plotly_network

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
)

# id, description, min, max, required
SAMPLE_TASKS = [
    ("1", "Site survey", 4, 7, ""),
    ("2", "Permits", 8, 11, ""),
    ("3", "Procurement", 3, 5, ""),
    ("4", "Foundations", 7, 10, "1"),
    ("5", "Utilities", 1, 4, "1,2,3"),
    ("6", "Landscaping", 9, 13, "3"),
    ("7", "Structure", 8, 12, "3,4,5"),
    ("8", "Drainage", 5, 8, "4"),
]


def _new_scheduler(event_domain: str, loop_policy: LoopPolicy, strict: bool, previous=None) -> AOAScheduler:
    scheduler = AOAScheduler(event_domain=event_domain, loop_policy=loop_policy, strict=strict)
    if previous is not None:
        for task in previous.task_list:
            scheduler.add_task(
                task.id, task.min_duration, task.max_duration,
                ",".join(r for r in previous.tasks if r in task.required),
                previous.descriptions.get(task.id, ""),
            )
    return scheduler


def main():
    """Main Streamlit application."""

    st.set_page_config(
        page_title="AOA Network Studio",
        page_icon="🕸",
        layout="wide",
        initial_sidebar_state="expanded"
    )

    if 'theme_name' not in st.session_state:
        st.session_state.theme_name = "Warm Clay"
    theme = get_active_theme(st.session_state.theme_name)
    st.markdown(get_theme_css(theme), unsafe_allow_html=True)

    st.title("🕸 Activity-on-Arc Network Studio")
    st.markdown("""
    **Activity on Arc - event network, simplification and critical path**

    Tasks are listed in order, prerequisites first. Each task becomes an arc between two
    events; dashed arcs are empty dependency arcs that carry no work.
    """)

    if 'scheduler' not in st.session_state:
        st.session_state.scheduler = AOAScheduler()
    if 'calculated' not in st.session_state:
        st.session_state.calculated = False
    scheduler = st.session_state.scheduler

    with st.sidebar:
        st.header("Add Task")

        with st.form("add_task_form", clear_on_submit=True):
            task_id = st.text_input(
                "Task ID",
                placeholder="e.g., 1, 2, DESIGN",
                help="Unique identifier (letters, digits, underscores)",
            ).strip()
            description = st.text_input("Description", placeholder="e.g., Foundations")
            cols = st.columns(2)
            with cols[0]:
                min_duration = st.number_input("Min duration", min_value=0.0, value=1.0, step=1.0)
            with cols[1]:
                max_duration = st.number_input("Max duration", min_value=0.0, value=1.0, step=1.0)
            required = st.multiselect(
                "Required tasks",
                options=list(scheduler.tasks.keys()),
                help="Only tasks already in the list can be prerequisites",
            )

            submitted = st.form_submit_button("Add Task", type="primary", use_container_width=True)
            if submitted:
                success, message = scheduler.add_task(
                    task_id, min_duration, max_duration, ",".join(required), description
                )
                if success:
                    st.session_state.calculated = False
                    st.rerun()
                else:
                    st.error(message)

        st.divider()

        st.header("Import Tasks")
        uploaded = st.file_uploader(
            "CSV with columns id, min_duration, max_duration, required, description",
            type=["csv"],
        )
        if uploaded is not None and st.button("Append CSV Tasks", use_container_width=True):
            errors = import_tasks_from_dataframe(scheduler, pd.read_csv(uploaded, dtype=str))
            st.session_state.calculated = False
            for error in errors:
                st.error(error)
            if not errors:
                st.success("Tasks imported!")

        st.divider()

        st.header("Settings")
        theme_name = st.selectbox(
            "Theme", options=list(THEMES.keys()),
            index=list(THEMES.keys()).index(st.session_state.theme_name),
        )
        event_domain = st.selectbox(
            "Event ids", options=list(EVENT_DOMAIN_LABELS.keys()),
            format_func=EVENT_DOMAIN_LABELS.get,
            index=list(EVENT_DOMAIN_LABELS.keys()).index(scheduler.event_domain),
        )
        policy_value = st.selectbox(
            "Simplifier loop", options=list(LOOP_POLICY_LABELS.keys()),
            format_func=LOOP_POLICY_LABELS.get,
            index=list(LOOP_POLICY_LABELS.keys()).index(scheduler.loop_policy.value),
        )
        strict = st.checkbox(
            "Keep task precedence while simplifying", value=scheduler.strict,
            help="When off, the simplification rules are applied unchecked and may change the critical path",
        )
        if (
            theme_name != st.session_state.theme_name
            or event_domain != scheduler.event_domain
            or policy_value != scheduler.loop_policy.value
            or strict != scheduler.strict
        ):
            st.session_state.theme_name = theme_name
            st.session_state.scheduler = _new_scheduler(
                event_domain, LoopPolicy(policy_value), strict, previous=scheduler
            )
            st.session_state.calculated = False
            st.rerun()

        st.divider()

        st.header("Sample Project")
        if st.button("Load Sample Project", use_container_width=True):
            scheduler.clear()
            for sample_id, desc, t_min, t_max, reqs in SAMPLE_TASKS:
                scheduler.add_task(sample_id, t_min, t_max, reqs, desc)
            st.success("Sample project loaded!")
            st.session_state.calculated = False
            st.rerun()

        if st.button("Clear All Tasks", use_container_width=True, type="secondary"):
            scheduler.clear()
            st.session_state.calculated = False
            st.success("All tasks cleared!")
            st.rerun()

    col1, col2 = st.columns([2, 1])

    with col1:
        st.header("Tasks")

        if scheduler.tasks:
            st.dataframe(scheduler.get_tasks_dataframe(), use_container_width=True, hide_index=True)

            with st.expander("Remove Task"):
                task_to_remove = st.selectbox("Select task to remove", options=list(scheduler.tasks.keys()))
                if st.button("Remove Selected Task"):
                    success, message = scheduler.remove_task(task_to_remove)
                    if success:
                        st.success(message)
                        st.session_state.calculated = False
                        st.rerun()
                    else:
                        st.error(message)
        else:
            st.info("No tasks added yet. Use the sidebar to add tasks or load the sample project.")

    with col2:
        st.header("Actions")

        if st.button("🔢 Build Network & Critical Path",
                     use_container_width=True, type="primary",
                     disabled=len(scheduler.tasks) == 0):
            success, message = scheduler.calculate()
            if success:
                st.session_state.calculated = True
                st.success(message)
            else:
                st.error(message)

        st.divider()

        if st.session_state.calculated:
            stats = compute_network_stats(scheduler)
            st.metric("Project Duration", f"{scheduler.project_duration:g}")
            st.metric("Events", stats["events"], delta=-stats["events_removed"] or None, delta_color="inverse")
            st.metric("Arcs", stats["arcs"], delta=-stats["arcs_removed"] or None, delta_color="inverse")
            if not stats["duration_preserved"]:
                st.warning(
                    f"Simplification changed the critical path total "
                    f"({scheduler.raw_duration:g} → {scheduler.project_duration:g})."
                )

    if st.session_state.calculated and scheduler.network is not None:
        st.divider()
        st.header("📈 Results")

        st.subheader("Critical Path")
        path_str = " → ".join(str(e) for e in scheduler.critical_path)
        task_str = " → ".join(str(t) for t in scheduler.critical_tasks)
        st.markdown(f'<div class="aoa-path">Events: {path_str}<br>Tasks: {task_str}</div>', unsafe_allow_html=True)
        st.dataframe(scheduler.get_path_dataframe(), use_container_width=True, hide_index=True)

        tab1, tab2, tab3, tab4 = st.tabs(
            ["📊 Network Diagram", "🧮 Interactive Network", "🔗 Arcs", "📝 Calculation Log"]
        )

        with tab1:
            show_raw = st.toggle("Show raw network", value=False)
            network = scheduler.raw_network if show_raw else scheduler.network
            fig = create_network_diagram(
                network.to_dict(), [] if show_raw else list(scheduler.critical_path), theme
            )
            st.pyplot(fig)
            plt.close(fig)
            st.caption("Solid arcs carry tasks, dashed arcs are empty dependency arcs.")

        with tab2:
            st.plotly_chart(
                create_plotly_network(scheduler.network.to_dict(), list(scheduler.critical_path), theme),
                use_container_width=True,
            )

        with tab3:
            left, right = st.columns(2)
            with left:
                st.markdown("**Raw network**")
                st.code(str(scheduler.raw_network), language="text")
                st.dataframe(scheduler.get_arcs_dataframe(simplified=False), use_container_width=True, hide_index=True)
            with right:
                st.markdown("**Simplified network**")
                st.code(str(scheduler.network), language="text")
                st.dataframe(scheduler.get_arcs_dataframe(), use_container_width=True, hide_index=True)

        with tab4:
            log_text = "\n".join(scheduler.calculation_log)
            st.text_area("Calculation Steps", value=log_text, height=500, disabled=True)

        st.download_button(
            "⬇ Download HTML Report",
            data=build_report_html(scheduler, theme),
            file_name="aoa_network_report.html",
            mime="text/html",
        )
        st.download_button(
            "⬇ Download Arcs CSV",
            data=scheduler.get_arcs_dataframe().to_csv(index=False),
            file_name="aoa_network_arcs.csv",
            mime="text/csv",
        )

    st.divider()
    st.markdown("""
    ---
    **AOA Network Studio** | Activity-on-Arc | Event network simplification and critical path
    """)


if __name__ == "__main__":
    main()
