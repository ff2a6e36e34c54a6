import logging

import dash
from dash import Dash
import dash_mantine_components as dmc

from services.config import LOG_FILE, LOG_LEVEL

# DMC 2.x needs React 18 on Dash 2.x renderers
try:
    from dash._dash_renderer import _set_react_version
    _set_react_version("18.2.0")
except (ImportError, AttributeError):
    pass

# Configure logging
_handlers = [logging.StreamHandler()]
if LOG_FILE:
    _handlers.append(logging.FileHandler(LOG_FILE))

logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=_handlers,
)
logger = logging.getLogger(__name__)

app = Dash(__name__, use_pages=True, suppress_callback_exceptions=True, title="Inventory Dashboard")

# Expose Flask server for Gunicorn
server = app.server

app.layout = dmc.MantineProvider(
    theme={
        "fontFamily": "'Inter', -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif",
        "headings": {
            "fontFamily": "'Inter', -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif",
            "fontWeight": "600"
        }
    },
    children=dmc.AppShell(
        id="appshell",
        padding="sm",
        header={"height": 60},
        children=[
            dmc.AppShellHeader(
                dmc.Group(
                    dmc.Title("Inventory Optimization", order=4),
                    h="100%",
                    px="md",
                    align="center",
                )
            ),
            dmc.AppShellMain(
                dmc.Container(dash.page_container, size="responsive", px="md", py="lg"),
            ),
        ],
    ),
)

logger.info("Inventory dashboard initialised with %d page(s)", len(dash.page_registry))

if __name__ == '__main__':
    app.run(debug=True)
