from __future__ import annotations
from pathlib import Path
import argparse
import warnings

from limbuse.config.constants import LIMBS
from limbuse.config.detection import DetectionConfig
from limbuse.config.settings import settings
from limbuse.math.filtering import DataQualityWarning
from limbuse.pipeline.io_utils import (
    read_camera_csv,
    camera_number,
    find_sessions,
    list_segments,
    camera_files,
    prepare_plot_folder,
    save_viewer_asset_table,
    save_combined_use_signal,
)
from limbuse.pipeline.pipeline import run_segment
from limbuse.pipeline.report import format_report, plot_view, plot_fused


def process_segment(segment_dir: Path, cfg: DetectionConfig, args) -> bool:
    files = camera_files(segment_dir)
    if not files:
        print(f"Skipping: no camera files in {segment_dir}")
        return False

    cameras = [(camera_number(f.name), read_camera_csv(f)) for f in files]
    seg = run_segment(cameras, cfg)

    plot_folder = prepare_plot_folder(segment_dir) if (args.show_plots or args.save_plots) else None
    for f, cam in zip(files, seg.cameras):
        for limb in LIMBS:
            view = cam.views[limb]
            if plot_folder is not None:
                out = plot_folder / f"Camera{cam.camera}_{limb}.png" if args.save_plots else None
                plot_view(view, cam.threshold, out_path=out, show=args.show_plots)
            if args.report:
                print(format_report(f"Camera {cam.camera} - {limb}", cam.summaries[limb]))
        if args.save_csv:
            save_viewer_asset_table(cam.table, segment_dir, f.name)

    for limb in LIMBS:
        fused = seg.fused[limb]
        if plot_folder is not None:
            name = f"Combined_Cameras(Base_Camera{fused.base_camera})-{limb}.png"
            plot_fused(fused, out_path=(plot_folder / name) if args.save_plots else None, show=args.show_plots)
        if args.report:
            print(format_report(f"Combined (Base: Camera {fused.base_camera}) - {limb}", seg.summaries[limb]))

    if args.save_csv:
        out = save_combined_use_signal(seg.table, segment_dir)
        print(f"Saved {out}")
    return True


def main():
    ap = argparse.ArgumentParser(description="Detect limb use from multi-camera wrist traces")
    ap.add_argument("--root", type=str, default=settings.data_root)
    ap.add_argument("--patients", nargs="+", required=True)
    ap.add_argument("--sessions", nargs="+", required=True, help="Session folder prefixes")
    ap.add_argument("--segments", nargs="*", default=[], help="Segment folders (default: all)")
    ap.add_argument("--fs", type=float, default=None)
    ap.add_argument("--order", type=int, default=None)
    ap.add_argument("--shoulder-ratio", type=float, default=None)
    ap.add_argument("--cutoff", type=float, default=None)
    ap.add_argument("--threshold-cutoff", type=float, default=None)
    ap.add_argument("--max-gap-s", type=float, default=None)
    ap.add_argument("--too-fast-s", type=float, default=None)
    ap.add_argument("--too-slow-s", type=float, default=None)
    ap.add_argument("--show-plots", action="store_true")
    ap.add_argument("--save-plots", action="store_true")
    ap.add_argument("--save-csv", action="store_true")
    ap.add_argument("--report", action="store_true")
    args = ap.parse_args()

    cfg = DetectionConfig.from_options(settings.detection_options(
        fs_hz=args.fs,
        order=args.order,
        shoulder_ratio=args.shoulder_ratio,
        cutoff_hz=args.cutoff,
        threshold_cutoff_hz=args.threshold_cutoff,
        max_gap_s=args.max_gap_s,
        too_fast_s=args.too_fast_s,
        too_slow_s=args.too_slow_s,
    ))
    root = Path(args.root)
    done = skipped = 0
    for patient in args.patients:
        print(f"\nProcessing Patient: {patient}")
        for prefix in args.sessions:
            for session_path in find_sessions(root / patient, prefix):
                print(f"Session: {session_path.name}")
                for segment in list_segments(session_path, args.segments):
                    print(f"\nSegment: {segment}")
                    segment_dir = session_path / segment
                    with warnings.catch_warnings(record=True) as caught:
                        warnings.simplefilter("always", DataQualityWarning)
                        try:
                            ok = process_segment(segment_dir, cfg, args)
                        except (KeyError, ValueError, FileNotFoundError) as exc:
                            print(f"WARNING: skipping segment '{segment}': {exc}")
                            ok = False
                    for w in caught:
                        print(f"WARNING: {w.message}")
                    done += int(ok)
                    skipped += int(not ok)
    print(f"\nSegments processed: {done}, skipped: {skipped}")
    return done, skipped


if __name__ == "__main__":
    main()
