"""Launcher for the signal coordination dashboard."""

import subprocess
import sys
from pathlib import Path


def main():
    """Launch the Streamlit dashboard."""
    print("Multi-Intersection Signal Coordination Dashboard")
    print("=" * 50)

    dashboard_path = Path(__file__).parent / "src" / "signal_network" / "dashboard" / "grid_dashboard.py"

    if not dashboard_path.exists():
        print("ERROR: Dashboard file not found!")
        print(f"Expected location: {dashboard_path}")
        return 1

    print(f"Dashboard location: {dashboard_path}")
    print("Dashboard will be available at: http://localhost:8501")
    print("Press Ctrl+C to stop the dashboard")
    print("-" * 50)

    try:
        cmd = [sys.executable, "-m", "streamlit", "run", str(dashboard_path)]
        subprocess.run(cmd, check=True)
    except subprocess.CalledProcessError as e:
        print(f"ERROR: Failed to start dashboard: {e}")
        return 1
    except KeyboardInterrupt:
        print("\nDashboard stopped by user")
        return 0
    except FileNotFoundError:
        print("ERROR: Streamlit not found! Please install it with: pip install streamlit")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
