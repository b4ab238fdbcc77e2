"""Theme definitions for the TUI.

This module hides the design decisions about:
- Color palettes and visual appearance
- Theme variables (borders, scrollbars, footer)

To add a new theme, define it here and register in the app.
"""

from textual.theme import Theme

# Near-black surfaces with a single blue accent
THINK_DARK = Theme(
    name="think-dark",
    primary="#2563eb",      # Blue 600 - user bubbles, active session
    secondary="#60a5fa",    # Blue 400 - assistant name, links
    accent="#3b82f6",       # Blue 500 - focus rings
    foreground="#e5e7eb",   # Gray 200 - body text
    background="#030712",   # Gray 950 - app background
    success="#22c55e",
    warning="#f59e0b",
    error="#f87171",        # Red 400 - error banner text
    surface="#111827",      # Gray 900 - input and panels
    panel="#000000",        # Sidebar
    dark=True,
    variables={
        "border": "#1f2937",
        "border-blurred": "#111827",

        "scrollbar": "#1f2937",
        "scrollbar-hover": "#374151",
        "scrollbar-active": "#2563eb",
        "scrollbar-background": "#030712",

        "footer-foreground": "#9ca3af",
        "footer-background": "#030712",
        "footer-key-foreground": "#60a5fa",
        "footer-key-background": "#111827",

        "text-muted": "#6b7280",
        "text-disabled": "#4b5563",

        "input-selection-background": "#2563eb 30%",
    },
)
