import argparse
import dataclasses
import logging
import os
import platform
import sys

from rich.console import Console
from rich.markup import escape
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TextColumn
from rich.table import Table

from ._version import __version__
from .config import CONFIG_FILENAME, load_config, write_default_config
from .errors import DualSplitError
from .io_utils import inspect_file, output_paths, read_volume, write_volume
from .pipeline import split_channels

console = Console()


def handle_init_config() -> int:
    """在当前目录生成默认配置文件 dualsplit_config.json。"""
    config_path = os.path.join(os.getcwd(), CONFIG_FILENAME)
    try:
        write_default_config(config_path)
    except FileExistsError:
        print(f"ℹ️  Config file already exists: {config_path}")
        print("   (Delete it first if you want to regenerate defaults)")
        return 0
    except OSError as e:
        print(f"❌ Failed to create config file: {e}")
        return 1

    print(f"✅ Generated default config file: {config_path}")
    print("   You can now edit this file to customize the default split options.")
    return 0


def handle_sysinfo() -> int:
    """打印系统环境信息，用于调试"""
    print("\n=== dualsplit System Info ===")
    print(f"dualsplit:     {__version__}")
    print(f"Python:        {sys.version.split()[0]} ({platform.architecture()[0]})")
    print(f"OS:            {platform.system()} {platform.release()}")

    for label, module_name in (("NumPy", "numpy"), ("OpenCV", "cv2"),
                               ("tifffile", "tifffile"), ("Matplotlib", "matplotlib")):
        try:
            module = __import__(module_name)
            print(f"{label + ':':<15}{module.__version__}")
        except ImportError:
            print(f"{label + ':':<15}Not Installed")

    print("=============================\n")
    return 0


def handle_file_info(filepath: str) -> int:
    """快速读取 Tiff 文件头信息而不加载整个文件"""
    print(f"\nScanning: {filepath} ...")
    try:
        meta = inspect_file(filepath)
    except DualSplitError as e:
        print(f"Error reading file metadata: {e}")
        return 1

    print("--- File Metadata ---")
    print(f"Dimensions:         {meta['shape']}")
    print(f"Data Type:          {meta['dtype']}")
    print(f"Axes:               {meta['axes']}")
    if meta["imagej"]:
        print(f"ImageJ Metadata:    T={meta['frames']}, Z={meta['slices']}, C={meta['channels']}")
    print(f"File Size:          {meta['size_mb']:.2f} MB")
    print("---------------------\n")
    return 0


def build_config(args):
    """配置文件 < 命令行参数。"""
    config = load_config(args.config)
    overrides = {}
    if args.size:
        overrides["target_width"], overrides["target_height"] = args.size
    if args.no_resize:
        overrides["resize"] = False
    if args.no_flip:
        overrides["flip_horizontal"] = False
    if args.no_reverse:
        overrides["reverse_depth_order"] = False
    if args.no_duplicate:
        overrides["duplicate_input"] = False
    if overrides:
        logging.debug(f"Command line overrides: {overrides}")
        config = dataclasses.replace(config, **overrides)
    return config


def run_split(args) -> int:
    source_path = os.path.abspath(args.filename)
    config = build_config(args)
    logging.debug(f"Effective config: {config}")

    source = read_volume(source_path)
    console.print(f"Loaded [bold]{escape(source.title)}[/bold]: {source.width}x{source.height}, "
                  f"C={source.n_channels} Z={source.n_slices} T={source.n_frames}, {source.bit_depth}-bit")

    with Progress(SpinnerColumn(), TextColumn("[progress.description]{task.description}"),
                  BarColumn(), TaskProgressColumn(), console=console, transient=True) as progress:
        task = progress.add_task("Splitting frames", total=source.n_frames)

        def on_progress(current, total):
            progress.update(task, completed=current, total=total)

        green, red = split_channels(source, config, progress_callback=on_progress)

    if args.out_dir:
        os.makedirs(args.out_dir, exist_ok=True)
    paths = output_paths(source_path, args.out_dir, (green.name, red.name))

    table = Table(title="Split result")
    table.add_column("Channel")
    table.add_column("Size")
    table.add_column("Slices", justify="right")
    table.add_column("Pixel size")
    table.add_column("Output")
    for vol in (green, red):
        write_volume(vol, paths[vol.name])
        cal = vol.calibration
        table.add_row(vol.name, f"{vol.width}x{vol.height}", str(vol.n_slices),
                      f"{cal.pixel_width:.4g} x {cal.pixel_height:.4g} {cal.unit}", escape(paths[vol.name]))
    console.print(table)

    if args.preview:
        from .preview import save_preview
        stem = os.path.splitext(paths[green.name])[0]
        preview_path = save_preview((green, red), f"{stem}_preview.png")
        console.print(f"Preview saved: {escape(preview_path)}")

    return 0


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        description="dualsplit: split a time-interleaved two-channel stack into Green/Red volumes.",
        prog="dualsplit"
    )

    parser.add_argument('-v', '--version', action='version', version=f'dualsplit {__version__}', help="Show version.")
    parser.add_argument('-s', '--sysinfo', action='store_true', help="Show system dependencies and environment info.")
    parser.add_argument('-i', '--info', metavar='FILE', help="Inspect a Tiff file's metadata without splitting it.")
    parser.add_argument('-d', '--debug', action='store_true', help="Enable debug mode with verbose logging.")
    parser.add_argument('-ini', '--init', action='store_true', help=f"Generate default configuration file ({CONFIG_FILENAME}).")
    parser.add_argument('-c', '--config', metavar='FILE', help=f"Config file (default: ./{CONFIG_FILENAME} if present).")
    parser.add_argument('-o', '--out-dir', metavar='DIR', help="Output directory (default: next to the input).")
    parser.add_argument('--size', nargs=2, type=int, metavar=('W', 'H'), help="Target width and height.")
    parser.add_argument('--no-resize', action='store_true', help="Keep the source width/height.")
    parser.add_argument('--no-flip', action='store_true', help="Do not mirror left-right.")
    parser.add_argument('--no-reverse', action='store_true', help="Do not reverse slice order.")
    parser.add_argument('--no-duplicate', action='store_true', help="Work on the loaded stack directly instead of a copy.")
    parser.add_argument('--preview', action='store_true', help="Save a PNG preview of both outputs.")
    parser.add_argument('filename', nargs='?', help="Interleaved Tiff stack (C=1, Z=1, T>=2).")

    args = parser.parse_args(argv)

    # --- 1. 日志配置 (最先执行) ---
    if args.debug:
        logging.basicConfig(
            level=logging.DEBUG,
            format='%(asctime)s - %(levelname)s - %(message)s',
            datefmt='%H:%M:%S'
        )
        logging.debug("🔧 Debug Mode Enabled")
        logging.debug(f"Arguments parsed: {args}")
    else:
        # 默认只显示警告及以上
        logging.basicConfig(level=logging.WARNING, format='%(levelname)s: %(message)s')

    # --- 2. 功能指令 ---
    if args.sysinfo:
        return handle_sysinfo()
    if args.init:
        return handle_init_config()
    if args.info:
        return handle_file_info(args.info)

    if not args.filename:
        parser.print_help(sys.stderr)
        return 1

    # --- 3. 拆分 ---
    try:
        return run_split(args)
    except (DualSplitError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        logging.debug("Split failed", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
