"""
Frontend application runner.
Run with: streamlit run app.py
"""
import subprocess
import sys
from pathlib import Path


def main():
    """Run the Streamlit frontend application"""
    app = Path(__file__).with_name("app.py")
    try:
        subprocess.run(["streamlit", "run", str(app)], check=True)
    except KeyboardInterrupt:
        print("\nApplication stopped.")
    except FileNotFoundError:
        print("Error: Streamlit not found. Please install dependencies:")
        print("  pip install -e .")
        sys.exit(1)
    except subprocess.CalledProcessError as e:
        print(f"Streamlit exited with status {e.returncode}")
        sys.exit(e.returncode)


if __name__ == "__main__":
    main()
