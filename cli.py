#!/usr/bin/env python3
"""
haptick - Command Line Interface

Main entry point for converting audio tracks into haptic event files.
Uses haptick/pipeline.py for all analysis (same code path as the library).
"""

import argparse
import sys
from collections import Counter
from pathlib import Path
from typing import Optional

import config
from haptick import audio_io, events, export, synthetic
from haptick.kernel_params import HapticConfig, validate_config
from haptick.models import SampleBuffer
from haptick.pipeline import analyze_buffer, synthesize_stream


def build_config(args: argparse.Namespace) -> HapticConfig:
    """
    Build pipeline config from CLI overrides on top of config.py defaults.

    Parameters:
        args: Parsed arguments

    Returns:
        HapticConfig
    """
    cfg = HapticConfig.from_options(
        fps=config.FPS,
        frame_length=config.FRAME_LENGTH,
        window_size=config.SMOOTHING_WINDOW,
        rolloff_threshold=config.ROLLOFF_THRESHOLD,
        threshold_k=config.THRESHOLD_K,
        threshold_basis=config.THRESHOLD_BASIS,
        intensity_floor=config.INTENSITY_FLOOR,
        intensity_gain=config.INTENSITY_GAIN,
        decimate=config.DECIMATE,
        secondary_feature=config.SECONDARY_FEATURE,
        heavy_secondary_feature=config.HEAVY_SECONDARY_FEATURE,
        medium_secondary_feature=config.MEDIUM_SECONDARY_FEATURE,
        sharpness_feature=config.SHARPNESS_FEATURE,
        n_workers=config.N_WORKERS,
        **config.CLASSIFICATION_THRESHOLDS
    )
    cfg = cfg.with_options(
        fps=args.fps,
        frame_length=args.frame_length,
        window_size=args.window_size,
        rolloff_threshold=args.rolloff_threshold,
        threshold_k=args.threshold_k,
        threshold_basis=args.threshold_basis,
        intensity_floor=args.intensity_floor,
        secondary_feature=args.secondary_feature,
        heavy_secondary_feature=args.heavy_feature,
        medium_secondary_feature=args.medium_feature,
        intensity_gain=args.intensity_gain,
        sharpness_feature=args.sharpness_feature,
        n_workers=args.workers,
        decimate=True if args.decimate else None,
    )
    validate_config(cfg)
    return cfg


def process_buffer(
    buffer: SampleBuffer,
    output_path: Path,
    cfg: HapticConfig,
    generate_plot: bool = False,
    verbose: bool = False
) -> dict:
    """
    Run the pipeline on a buffer and export the results.

    Used by both process_single_track and run_demo_mode.

    Parameters:
        buffer: Input samples
        output_path: Target haptic JSON path
        cfg: Pipeline configuration
        generate_plot: Whether to write a diagnostic plot
        verbose: Print verbose progress messages

    Returns:
        Summary dict for the written stream
    """
    def report(stage: str, fraction: float) -> None:
        if verbose:
            print(f"   [{fraction:4.0%}] {stage}")

    if verbose:
        frame_length = cfg.frame.frame_length
        print(f"   Frame: {frame_length} samples "
              f"({config.get_frame_duration(buffer.sample_rate, frame_length) * 1000:.1f} ms, "
              f"{config.get_bin_width(buffer.sample_rate, frame_length):.1f} Hz bins)")
        print("2. Analyzing audio...")
    analysis = analyze_buffer(buffer, cfg, progress=report)
    stream = synthesize_stream(analysis, cfg)

    if verbose:
        print(f"   {analysis.frame_features.frame_count} analysis frames -> "
              f"{analysis.output_frame_count} output frames, threshold {analysis.threshold:.4f}")
        print("3. Exporting results...")

    sharpness = events.select_sharpness(analysis.smoothed, cfg.events.sharpness_feature)
    created_files = export.export_all_outputs(
        stream,
        output_path,
        analysis=analysis,
        sharpness=sharpness,
        generate_plot=generate_plot
    )

    if verbose:
        for path in created_files:
            print(f"   Wrote {path}")

    return export.create_summary(stream)


def process_single_track(
    file_path: Path,
    output_dir: Optional[Path],
    cfg: HapticConfig,
    target_sr: Optional[int] = None,
    generate_plot: bool = False,
    verbose: bool = False,
    keep_suffix: bool = False
) -> bool:
    """
    Process a single audio track through the full pipeline.

    Parameters:
        file_path: Path to audio or video file
        output_dir: Output directory (None = next to the input)
        cfg: Pipeline configuration
        target_sr: Resample to this rate before analysis (None = native)
        generate_plot: Whether to write a diagnostic plot
        verbose: Print verbose progress messages
        keep_suffix: Name the output <name>.<ext>.json (for inputs sharing a stem)

    Returns:
        True if successful, False otherwise
    """
    try:
        if verbose:
            print(f"\nProcessing: {file_path.name}")
            print("-" * 60)
            print("1. Loading audio...")

        buffer = audio_io.load_sample_buffer(file_path, target_sr=target_sr)

        if verbose:
            print(f"   Duration: {buffer.duration:.2f}s, Sample rate: {buffer.sample_rate:.0f} Hz")

        output_path = export.default_output_path(file_path, output_dir, keep_suffix=keep_suffix)
        summary = process_buffer(buffer, output_path, cfg, generate_plot, verbose)

        if verbose:
            export.print_stream_summary(summary, file_path.stem)
        else:
            print(f"{file_path.name}: {summary['num_events']} events -> {output_path}")

        return True

    except Exception as e:
        print(f"ERROR processing {file_path.name}: {e}", file=sys.stderr)
        if verbose:
            import traceback
            traceback.print_exc()
        return False


def process_directory(
    input_dir: Path,
    output_dir: Optional[Path],
    cfg: HapticConfig,
    target_sr: Optional[int] = None,
    generate_plot: bool = False,
    verbose: bool = False
) -> dict:
    """
    Process all audio files in a directory.

    Parameters:
        input_dir: Input directory containing audio files
        output_dir: Output directory for results (None = beside each input)
        cfg: Pipeline configuration
        target_sr: Resample rate (None = native)
        generate_plot: Whether to write diagnostic plots
        verbose: Print verbose messages

    Returns:
        Dict with success/failure counts
    """
    audio_files = set()
    for ext in config.AUDIO_EXTENSIONS:
        audio_files.update(input_dir.glob(f'*{ext}'))
        audio_files.update(input_dir.glob(f'*{ext.upper()}'))

    if not audio_files:
        print(f"No audio files found in {input_dir}")
        return {'success': 0, 'failed': 0}

    print(f"Found {len(audio_files)} audio files")

    # Inputs that differ only by extension would write the same <stem>.json
    stem_counts = Counter(path.stem.lower() for path in audio_files)

    success_count = 0
    failed_count = 0

    for audio_file in sorted(audio_files):
        success = process_single_track(
            audio_file, output_dir, cfg, target_sr, generate_plot, verbose,
            keep_suffix=stem_counts[audio_file.stem.lower()] > 1
        )

        if success:
            success_count += 1
        else:
            failed_count += 1

    print(f"\nProcessing complete: {success_count} successful, {failed_count} failed")

    return {'success': success_count, 'failed': failed_count}


def run_demo_mode(output_dir: Path, cfg: HapticConfig, generate_plot: bool = False,
                  verbose: bool = False) -> bool:
    """
    Run demo mode using synthetic test tracks.

    Parameters:
        output_dir: Output directory for demo results
        cfg: Pipeline configuration
        generate_plot: Whether to write diagnostic plots
        verbose: Print verbose messages

    Returns:
        True if successful
    """
    print("Running demo mode with synthetic audio...")

    sr = 22050
    test_tracks = [
        {
            'name': 'demo_beats',
            'audio': synthetic.generate_beat_pattern(duration=8.0, sr=sr),
            'description': 'Kick and hat pattern at 120 BPM'
        },
        {
            'name': 'demo_crescendo',
            'audio': synthetic.generate_crescendo(duration=8.0, sr=sr),
            'description': 'Rising amplitude and brightness'
        },
        {
            'name': 'demo_tone',
            'audio': synthetic.generate_sine(duration=4.0, sr=sr, freq=440.0, amplitude=0.5),
            'description': 'Constant 440 Hz tone'
        }
    ]

    print(f"Generated {len(test_tracks)} synthetic test tracks")

    for track_info in test_tracks:
        print(f"\nProcessing: {track_info['name']} ({track_info['description']})")
        print("-" * 60)

        try:
            buffer = SampleBuffer(samples=track_info['audio'], sample_rate=sr)
            output_path = Path(output_dir) / f"{track_info['name']}.json"
            summary = process_buffer(buffer, output_path, cfg, generate_plot, verbose)
            export.print_stream_summary(summary, track_info['name'])

        except Exception as e:
            print(f"ERROR: {e}", file=sys.stderr)
            if verbose:
                import traceback
                traceback.print_exc()
            return False

    print(f"\nDemo complete! Results saved to {output_dir}")
    return True


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description='haptick - Convert audio into haptic event streams',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Analyze single file (writes track.json next to it)
  %(prog)s track.wav

  # Analyze the soundtrack of a video into a results directory
  %(prog)s clip.mp4 --output results/

  # Analyze directory at 30 fps with decimation
  %(prog)s tracks/ --output results/ --fps 30 --decimate

  # Run demo mode
  %(prog)s --demo --output demo_results/ --plot
        """
    )

    parser.add_argument(
        'input',
        nargs='?',
        type=str,
        help='Input audio/video file or directory (not needed for --demo)'
    )

    parser.add_argument(
        '--output', '-o',
        type=str,
        help='Output directory for haptic files (default: next to each input)'
    )

    parser.add_argument(
        '--demo',
        action='store_true',
        help='Run demo mode with synthetic test tracks (requires --output)'
    )

    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Print verbose progress messages'
    )

    parser.add_argument(
        '--plot',
        action='store_true',
        help='Write a diagnostic plot next to each haptic file'
    )

    # Parameter overrides
    parser.add_argument(
        '--fps',
        type=int,
        help=f'Haptic event rate (default: {config.FPS})'
    )

    parser.add_argument(
        '--frame-length',
        type=int,
        help=f'FFT frame length in samples, power of two (default: {config.FRAME_LENGTH})'
    )

    parser.add_argument(
        '--window-size',
        type=int,
        help=f'Smoothing window in output frames (default: {config.SMOOTHING_WINDOW})'
    )

    parser.add_argument(
        '--rolloff-threshold',
        type=float,
        help=f'Energy fraction for spectral rolloff (default: {config.ROLLOFF_THRESHOLD})'
    )

    parser.add_argument(
        '--threshold-k',
        type=float,
        help=f'Std multiplier of the adaptive threshold (default: {config.THRESHOLD_K})'
    )

    parser.add_argument(
        '--threshold-basis',
        choices=['rms', 'intensity'],
        help=f'Series the threshold is computed over (default: {config.THRESHOLD_BASIS})'
    )

    parser.add_argument(
        '--intensity-floor',
        type=float,
        help=f'Fixed minimum intensity for emission (default: {config.INTENSITY_FLOOR})'
    )

    parser.add_argument(
        '--secondary-feature',
        choices=['centroid', 'rolloff', 'bandwidth'],
        help=f'Classification feature (default: {config.SECONDARY_FEATURE})'
    )

    parser.add_argument(
        '--heavy-feature',
        choices=['centroid', 'rolloff', 'bandwidth'],
        help='Classification feature for the heavy rung only (default: --secondary-feature)'
    )

    parser.add_argument(
        '--medium-feature',
        choices=['centroid', 'rolloff', 'bandwidth'],
        help='Classification feature for the medium rung only (default: --secondary-feature)'
    )

    parser.add_argument(
        '--intensity-gain',
        type=float,
        help=f'RMS to intensity multiplier (default: {config.INTENSITY_GAIN})'
    )

    parser.add_argument(
        '--sharpness-feature',
        choices=['centroid', 'dominant_frequency'],
        help=f'Feature that drives sharpness (default: {config.SHARPNESS_FEATURE})'
    )

    parser.add_argument(
        '--decimate',
        action='store_true',
        help='Keep only even output frames'
    )

    parser.add_argument(
        '--workers',
        type=int,
        help=f'FFT worker threads, -1 = all cores (default: {config.N_WORKERS})'
    )

    parser.add_argument(
        '--target-sr',
        type=int,
        help='Resample audio to this rate before analysis (default: native rate)'
    )

    args = parser.parse_args(argv)

    # Validate arguments
    if not args.demo and not args.input:
        parser.error("Either provide an input file/directory or use --demo")
    if args.demo and not args.output:
        parser.error("--demo requires --output")

    try:
        cfg = build_config(args)
    except ValueError as e:
        parser.error(str(e))

    output_dir = Path(args.output) if args.output else None

    # Run appropriate mode
    if args.demo:
        success = run_demo_mode(output_dir, cfg, args.plot, args.verbose)
        sys.exit(0 if success else 1)

    input_path = Path(args.input)

    if not input_path.exists():
        print(f"ERROR: Input path does not exist: {input_path}", file=sys.stderr)
        sys.exit(1)

    if input_path.is_file():
        success = process_single_track(
            input_path, output_dir, cfg, args.target_sr, args.plot, args.verbose
        )
        sys.exit(0 if success else 1)

    elif input_path.is_dir():
        results = process_directory(
            input_path, output_dir, cfg, args.target_sr, args.plot, args.verbose
        )
        sys.exit(0 if results['failed'] == 0 else 1)

    else:
        print(f"ERROR: Invalid input path: {input_path}", file=sys.stderr)
        sys.exit(1)


if __name__ == '__main__':
    main()
