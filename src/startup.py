import os
import subprocess
import sys
from pathlib import Path
import logging

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def setup_environment():
    """Prepare environment variables before Streamlit starts."""
    # Add project root to Python path so `src.*` imports resolve inside Streamlit
    project_root = Path(__file__).parent.parent
    os.environ["PYTHONPATH"] = os.pathsep.join(
        p for p in [str(project_root), os.environ.get("PYTHONPATH", "")] if p
    )
    os.environ["STREAMLIT_TELEMETRY"] = "0"
    os.environ.setdefault("STREAMLIT_BROWSER_GATHER_USAGE_STATS", "false")
    logger.info("Environment setup complete")


def run_app():
    """Run the Streamlit application."""
    try:
        setup_environment()
        app_path = Path(__file__).parent / "app.py"
        if not app_path.exists():
            raise FileNotFoundError(f"App file not found: {app_path}")
        subprocess.run([sys.executable, "-m", "streamlit", "run", str(app_path)], check=True)
    except Exception as e:
        logger.error(f"Failed to start application: {e}")
        sys.exit(1)


if __name__ == "__main__":
    run_app()
