import sys
import os


def launch_dualsplit():
    """
    Bootstrap script to run dualsplit from the project root without installing it.
    """
    project_root = os.path.dirname(os.path.abspath(__file__))
    src_path = os.path.join(project_root, 'src')

    # 让 Python 能找到 src/dualsplit
    if src_path not in sys.path:
        sys.path.insert(0, src_path)

    try:
        from dualsplit.main import main
    except ImportError as e:
        print("❌ Launch Error: Could not import dualsplit.")
        print(f"Details: {e}")
        print(f"  - Project Root: {project_root}")
        print("  - Expected file: src/dualsplit/main.py")
        sys.exit(1)

    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("\nUser interrupted execution.")
        sys.exit(130)


if __name__ == "__main__":
    launch_dualsplit()
