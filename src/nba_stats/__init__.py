"""NBA Stats MCP App Server.

Live NBA scores, team rosters, league leaders, player profiles and matchup
previews from ESPN, exposed as priced read-only tools.
"""

__version__ = "1.0.0"


def get_app_html() -> str:
    """Return the MCP App HTML content. Re-renders each call for hot reload."""
    from .app_definition import NbaStatsApp

    return NbaStatsApp().render()
