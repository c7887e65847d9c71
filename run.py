#!/usr/bin/env python3
"""
WasteTrack Backend - Main application entry point
"""
from wastetrack import create_app
import os

app = create_app()

if __name__ == '__main__':
    port = int(os.getenv('PORT', 5000))
    debug = os.getenv('DEBUG', 'True').lower() == 'true'

    app.run(
        host='0.0.0.0',
        port=port,
        debug=debug,
        # A reloader child would start a second scheduler
        use_reloader=False,
    )
