from typing import Dict, Any

LOOP_POLICY_LABELS = {
    "until_shrink": "Stop after the first shrinking pass",
    "until_stable": "Repeat until nothing changes",
}

EVENT_DOMAIN_LABELS = {
    "letters": "Letters (A, B, C, ...)",
    "numbers": "Numbers (0, 1, 2, ...)",
    "events": "Prefixed (e0, e1, e2, ...)",
}


THEMES = {
    "Warm Clay": {
        "bg": "#f7f5f2",
        "surface": "#ffffff",
        "surface2": "#fbfaf7",
        "ink": "#1f2328",
        "muted": "#5f6c7b",
        "accent": "#ff6b4a",
        "accent2": "#2c7a7b",
        "border": "#e2ded7",
        "critical": "#ff6b4a",
        "critical_soft": "#ffd2c5",
        "noncritical": "#2c7a7b",
        "node_crit": "#ffc2b3",
        "node_noncrit": "#d7eef0",
        "edge_task": "#2563eb",
        "edge_empty": "#c7bfb4",
        "sidebar_ink": "#f2f2f2",
    },
    "Nordic Blue": {
        "bg": "#f3f6fb",
        "surface": "#ffffff",
        "surface2": "#f2f7ff",
        "ink": "#1c2433",
        "muted": "#5b6b7f",
        "accent": "#3b82f6",
        "accent2": "#0f766e",
        "border": "#dbe3f2",
        "critical": "#f97316",
        "critical_soft": "#ffe2d1",
        "noncritical": "#0f766e",
        "node_crit": "#ffd6c7",
        "node_noncrit": "#d9f0ff",
        "edge_task": "#3b82f6",
        "edge_empty": "#c7d3e6",
        "sidebar_ink": "#f2f2f2",
    },
}

def get_active_theme(theme_name: str) -> Dict[str, Any]:
    return THEMES.get(theme_name, THEMES["Warm Clay"])

APP_CSS = """
<style>
@import url('https://fonts.googleapis.com/css2?family=Space+Grotesk:wght@400;500;600;700&display=swap');
:root {
    --aoa-bg: __AOA_BG__;
    --aoa-surface: __AOA_SURFACE__;
    --aoa-ink: __AOA_INK__;
    --aoa-muted: __AOA_MUTED__;
    --aoa-accent: __AOA_ACCENT__;
    --aoa-border: __AOA_BORDER__;
    --aoa-surface-2: __AOA_SURFACE2__;
    --aoa-radius: 16px;
}
html, body, [data-testid="stAppViewContainer"], [data-testid="stSidebar"] {
    font-family: "Space Grotesk", sans-serif;
}
.stApp {
    background: radial-gradient(
        circle at 10% 0%,
        color-mix(in srgb, var(--aoa-accent) 12%, #ffffff 88%) 0%,
        var(--aoa-bg) 45%,
        var(--aoa-surface) 100%
    );
}
[data-testid="stAppViewContainer"] {
    color: var(--aoa-ink);
}
[data-testid="stAppViewContainer"] .stCaption,
[data-testid="stAppViewContainer"] small,
[data-testid="stMetricLabel"] {
    color: var(--aoa-muted);
}
[data-testid="stSidebar"] {
    background: linear-gradient(
        180deg,
        color-mix(in srgb, var(--aoa-accent) 6%, var(--aoa-surface) 94%),
        var(--aoa-bg)
    );
    border-right: 1px solid var(--aoa-border);
}
[data-testid="stMarkdown"] pre {
    background: color-mix(in srgb, var(--aoa-accent) 6%, var(--aoa-surface) 94%);
    border-radius: 12px;
    border: 1px solid color-mix(in srgb, var(--aoa-border) 65%, transparent);
    padding: 12px;
}
.aoa-path {
    padding: 12px 18px;
    border-radius: var(--aoa-radius);
    background: var(--aoa-surface-2);
    border: 1px solid var(--aoa-border);
    font-weight: 600;
}
</style>
"""
def get_theme_css(theme: Dict[str, Any]) -> str:
    """
    Returns the CSS for the application with tokens replaced by theme values.
    """
    css = APP_CSS
    replacements = {
        "__AOA_BG__": theme["bg"],
        "__AOA_SURFACE__": theme["surface"],
        "__AOA_INK__": theme["ink"],
        "__AOA_MUTED__": theme["muted"],
        "__AOA_ACCENT__": theme["accent"],
        "__AOA_BORDER__": theme["border"],
        "__AOA_SURFACE2__": theme["surface2"],
    }
    for token, value in replacements.items():
        css = css.replace(token, value)
    return css
