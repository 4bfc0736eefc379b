"""NBA Stats MCP App: pure Python config, no custom JS/CSS."""

from mcpbundles_app_ui import App, Card, DarkTheme


class NbaStatsApp(App):
    """Scoreboard dashboard plus the priced tool catalog."""

    name = "NBA Stats"
    subtitle = "Live scores, rosters, leaders & players from ESPN"
    theme = DarkTheme(
        accent="#f97316",
        bg_page="#0b1120",
        bg_card="#1a2234",
        bg_hover="#243049",
        text_primary="#f8fafc",
        text_secondary="#e2e8f0",
        text_muted="#94a3b8",
        border="#334155",
        success="#22c55e",
        warning="#eab308",
        error="#ef4444",
        chart_colors=[
            "#f97316", "#3b82f6", "#22c55e", "#eab308",
            "#a855f7", "#06b6d4", "#ef4444", "#ec4899",
        ],
    )

    layout = [Card(title="")]

    tool_name = "open_nba_app"
    tabs = [
        {"id": "overview", "label": "Today", "tool": "open_nba_app", "type": "dashboard"},
        {"id": "tools", "label": "Tools", "tool": None, "type": "tools"},
    ]
    footer_text = "ESPN NBA API"

    tool_catalog_intro = (
        "This server provides <strong>7 tools</strong> your AI can call directly. "
        "One opens this app and 6 query live ESPN data; each data tool has a fixed price tier. "
        "All tools are <strong>read-only</strong>. "
        "Teams accept abbreviations (<code>LAL</code>), names (<code>Lakers</code>) or ESPN IDs (<code>13</code>)."
    )
    tool_catalog = [
        {"name": "open_nba_app", "label": "Open NBA App", "icon": "\U0001f3c0", "desc": "Opens this dashboard with today's games and headlines.", "usage": "No arguments needed, just call it.", "source": "ESPN", "price": "free"},
        {"name": "nba_overview", "label": "Overview", "icon": "\U0001f4cb", "desc": "Today's games and the latest league headlines.", "usage": "nba_overview()", "source": "ESPN", "price": "free"},
        {"name": "nba_scores", "label": "Scores", "icon": "\U0001f4ca", "desc": "Live scores for today or a given date. Scores are absent for games not yet started.", "usage": 'nba_scores(date="20260115")', "source": "ESPN", "price": "$0.001"},
        {"name": "nba_team", "label": "Team", "icon": "\U0001f455", "desc": "Team profile, full roster and recent results.", "usage": 'nba_team(team="LAL")', "source": "ESPN", "price": "$0.002"},
        {"name": "nba_leaders", "label": "League Leaders", "icon": "\U0001f3c6", "desc": "Per-game leaders in points, rebounds, assists, steals or blocks.", "usage": 'nba_leaders(category="assists", limit=10)', "source": "ESPN", "price": "$0.002"},
        {"name": "nba_player", "label": "Player", "icon": "\U0001f464", "desc": "Player bio, season averages and career stats.", "usage": 'nba_player(player_id="1966")', "source": "ESPN", "price": "$0.003"},
        {"name": "nba_matchup", "label": "Matchup", "icon": "⚔️", "desc": "Head-to-head preview: starters and win/loss records for both teams.", "usage": 'nba_matchup(home_team="BOS", away_team="LAL")', "source": "ESPN", "price": "$0.005"},
    ]
