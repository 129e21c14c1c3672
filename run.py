#!/usr/bin/env python3
"""
Entry point for the Scoreboard Service.

Usage:
    python run.py                    # Run the API server (default)
    python run.py serve              # Run the API server explicitly
    python run.py init-db            # Create database tables and exit
    python run.py watch              # Print the scoreboard on every change

Environment Variables:
    FLASK_ENV: development, testing or production (default: development)
    PORT: Port to run on (default: 5000)
    LOG_LEVEL: Logging level (default: INFO)
"""
import logging
import os
import sys
import threading


def configure_logging():
    logging.basicConfig(
        level=os.getenv('LOG_LEVEL', 'INFO').upper(),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s'
    )


def run_server():
    """Run the scoreboard API server."""
    from scoreboard.app import create_app

    app = create_app()
    port = int(os.getenv('PORT', 5000))
    debug = os.getenv('FLASK_ENV', 'development') == 'development'

    print(f"Starting Scoreboard Service on port {port}...")
    app.run(host='0.0.0.0', port=port, debug=debug, threaded=True)


def init_db():
    """Create tables in the configured database."""
    from scoreboard.app import create_app

    # create_app() creates any missing tables
    create_app()
    print("✓ Database tables created.")


def watch_scoreboard():
    """Print the scoreboard every time it changes (needs the redis change feed)."""
    from scoreboard.app import create_app

    app = create_app()

    def show(teams):
        print(f"--- {len(teams)} teams ---")
        for rank, team in enumerate(teams, 1):
            print(f"{rank:>3}. #{team['teamNumber']:<4} {team['teamName']:<30} {team['score']:>8}  ({team['uid']})")

    subscription = app.scoreboard.subscribe(show)
    try:
        threading.Event().wait()
    except KeyboardInterrupt:
        pass
    finally:
        subscription.cancel()


if __name__ == '__main__':
    configure_logging()
    mode = sys.argv[1] if len(sys.argv) > 1 else 'serve'

    if mode == 'serve':
        run_server()
    elif mode == 'init-db':
        init_db()
    elif mode == 'watch':
        watch_scoreboard()
    else:
        print(f"Unknown mode: {mode}")
        print("Usage: python run.py [serve|init-db|watch]")
        sys.exit(1)
