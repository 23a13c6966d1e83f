"""
Export Module

Write and read haptic JSON files, and generate summaries and plots.
All outputs follow the versioned haptic schema:

    {
      "metadata": {"version": 3, "fps": 60, "duration": 12.5, "totalFrames": 750},
      "events": [{"time": 0.0, "intensity": 0.8, "sharpness": 0.4, "type": "medium"}, ...]
    }
"""

import json
from pathlib import Path
from typing import Dict, List, Optional, Union

import matplotlib
matplotlib.use('Agg')  # Non-interactive backend
import matplotlib.pyplot as plt
import numpy as np

import config
from haptick import timebase
from haptick.events import count_events_by_type
from haptick.models import HapticEvent, HapticMetadata, HapticStream, HapticType


TYPE_COLORS: Dict[str, str] = {
    HapticType.HEAVY.value: 'red',
    HapticType.MEDIUM.value: 'orange',
    HapticType.LIGHT.value: 'green',
    HapticType.SOFT.value: 'blue',
}


class NumpyEncoder(json.JSONEncoder):
    """JSON encoder that handles numpy types."""
    def default(self, obj):
        if isinstance(obj, np.integer):
            return int(obj)
        elif isinstance(obj, np.floating):
            return float(obj)
        elif isinstance(obj, np.ndarray):
            return obj.tolist()
        elif isinstance(obj, np.bool_):
            return bool(obj)
        return super().default(obj)


def default_output_path(
    input_path: Union[str, Path],
    output_dir: Optional[Path] = None,
    keep_suffix: bool = False
) -> Path:
    """
    Haptic file path for an input file: <stem>.json beside the input,
    or inside output_dir when given.

    keep_suffix=True keeps the input extension (<name>.<ext>.json), so
    track.wav and track.mp3 in one directory do not overwrite each other.
    """
    input_path = Path(input_path)
    name = input_path.name if keep_suffix else input_path.stem
    directory = input_path.parent if output_dir is None else Path(output_dir)
    return directory / f"{name}.json"


def create_haptic_json(stream: HapticStream, events_key: str = config.EVENTS_KEY) -> Dict:
    """
    Build the haptic file payload, verifying stream invariants first.

    Raises:
        ValueError: If any event violates the stream invariants
    """
    violations = timebase.find_event_violations(list(stream.events), stream.metadata.duration)
    if violations:
        raise ValueError(f"Haptic stream is invalid: {violations[0]} ({len(violations)} total)")
    return stream.to_dict(events_key=events_key)


def save_json(data: Dict, output_path: Path) -> None:
    """
    Save data as JSON with pretty printing.

    Parameters:
        data: Dictionary to save
        output_path: Path to output file
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, 'w') as f:
        json.dump(data, f, indent=2, cls=NumpyEncoder)


def save_haptic_stream(stream: HapticStream, output_path: Path) -> Path:
    """Write a stream as a haptic JSON file and return its path."""
    output_path = Path(output_path)
    save_json(create_haptic_json(stream), output_path)
    return output_path


def parse_haptic_json(data: Dict) -> HapticStream:
    """
    Build a HapticStream from a decoded haptic JSON document.

    Accepts any of the event list keys used by earlier revisions.

    Raises:
        ValueError: If metadata or the event list is missing or malformed
    """
    if not isinstance(data, dict) or 'metadata' not in data:
        raise ValueError("Haptic file has no metadata")

    events_key = next((key for key in config.LEGACY_EVENTS_KEYS if key in data), None)
    if events_key is None:
        raise ValueError(f"Haptic file has no event list (expected one of {config.LEGACY_EVENTS_KEYS})")

    try:
        metadata = HapticMetadata.from_dict(data['metadata'])
        haptic_events = [HapticEvent.from_dict(item) for item in data[events_key]]
    except (KeyError, TypeError, ValueError) as exc:
        raise ValueError(f"Malformed haptic file: {exc}") from exc

    return HapticStream(metadata=metadata, events=tuple(haptic_events))


def load_haptic_stream(input_path: Path) -> HapticStream:
    """
    Read a haptic JSON file.

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the file is not a valid haptic document
    """
    with open(input_path) as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as exc:
            raise ValueError(f"Haptic file is not valid JSON: {exc}") from exc
    return parse_haptic_json(data)


def create_summary(stream: HapticStream) -> Dict:
    """
    Create summary dict with key statistics.

    Parameters:
        stream: Haptic stream

    Returns:
        Summary dict with top-level stats
    """
    intensities = np.array([event.intensity for event in stream.events], dtype=np.float64)
    total_frames = stream.metadata.total_frames

    return {
        'schema_version': stream.metadata.version,
        'duration_sec': stream.metadata.duration,
        'fps': stream.metadata.fps,
        'total_frames': total_frames,
        'num_events': len(stream),
        'event_density': len(stream) / total_frames if total_frames > 0 else 0.0,
        'mean_intensity': float(np.mean(intensities)) if len(intensities) else 0.0,
        'peak_intensity': float(np.max(intensities)) if len(intensities) else 0.0,
        'events_by_type': count_events_by_type(list(stream.events)),
    }


def print_stream_summary(summary: Dict, track_name: str) -> None:
    """
    Print concise stream summary to console.

    Parameters:
        summary: Summary dict from create_summary
        track_name: Track name
    """
    print(f"\n{'='*60}")
    print(f"Haptic Summary: {track_name}")
    print(f"{'='*60}")
    print(f"Duration: {summary['duration_sec']:.2f} seconds at {summary['fps']} fps "
          f"({summary['total_frames']} frames)")
    print(f"Events: {summary['num_events']} "
          f"(density {summary['event_density']:.1%}, "
          f"mean intensity {summary['mean_intensity']:.3f})")
    for type_name, count in summary['events_by_type'].items():
        print(f"  {type_name:>6}: {count}")
    print(f"{'='*60}\n")


def plot_haptic_stream(
    smoothed_rms: np.ndarray,
    sharpness: np.ndarray,
    threshold: float,
    stream: HapticStream,
    output_path: Path,
    title: str = "Haptic Analysis"
) -> None:
    """
    Plot output-rate features with emitted events.

    Parameters:
        smoothed_rms: Smoothed RMS per output frame
        sharpness: Sharpness per output frame
        threshold: Calibrated emission threshold
        stream: Emitted haptic stream
        output_path: Path to save plot
        title: Plot title
    """
    fps = stream.metadata.fps
    times = timebase.compute_time_axis(len(smoothed_rms), fps)

    fig, axes = plt.subplots(3, 1, figsize=config.PLOT_FIGSIZE, sharex=True)

    # Plot 1: Loudness with gate
    ax1 = axes[0]
    ax1.plot(times, smoothed_rms, label='RMS (smoothed)', color='black', linewidth=1.5)
    ax1.axhline(threshold, color='purple', linestyle='--', linewidth=1, label='Threshold')
    ax1.set_ylabel('RMS', fontsize=10)
    ax1.set_title(title, fontsize=12, fontweight='bold')
    ax1.legend(loc='upper right', fontsize=8)
    ax1.grid(True, alpha=0.3)

    # Plot 2: Sharpness
    ax2 = axes[1]
    ax2.plot(times, sharpness, label='Sharpness', color='blue', linewidth=1.5)
    ax2.set_ylabel('Sharpness', fontsize=10)
    ax2.legend(loc='upper right', fontsize=8)
    ax2.grid(True, alpha=0.3)
    ax2.set_ylim(-0.05, 1.05)

    # Plot 3: Events, colored by type
    ax3 = axes[2]
    for type_name, color in TYPE_COLORS.items():
        typed = [event for event in stream.events if event.type.value == type_name]
        if typed:
            ax3.vlines([e.time for e in typed], 0, [e.intensity for e in typed],
                       color=color, linewidth=1, label=type_name)
    ax3.set_xlabel('Time (seconds)', fontsize=10)
    ax3.set_ylabel('Intensity', fontsize=10)
    ax3.grid(True, alpha=0.3)
    ax3.set_ylim(-0.05, 1.05)
    if stream.events:
        ax3.legend(loc='upper right', fontsize=8)

    plt.tight_layout()

    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    plt.savefig(output_path, dpi=config.PLOT_DPI, bbox_inches='tight')
    plt.close(fig)


def export_all_outputs(
    stream: HapticStream,
    output_path: Path,
    analysis=None,
    sharpness: Optional[np.ndarray] = None,
    generate_plot: bool = False
) -> List[Path]:
    """
    Export the haptic JSON and, optionally, a diagnostic plot next to it.

    Parameters:
        stream: Haptic stream to write
        output_path: Target JSON path
        analysis: HapticAnalysis from the pipeline (needed for the plot)
        sharpness: Sharpness series to plot (needed for the plot)
        generate_plot: Whether to write <stem>_haptics.png

    Returns:
        List of paths to created files
    """
    output_path = Path(output_path)
    created_files = [save_haptic_stream(stream, output_path)]

    if generate_plot and analysis is not None:
        plot_path = output_path.with_name(f"{output_path.stem}_haptics.png")
        if sharpness is None:
            sharpness = np.zeros(analysis.output_frame_count)
        plot_haptic_stream(
            analysis.smoothed['rms'],
            sharpness,
            analysis.threshold,
            stream,
            plot_path,
            title=f"Haptic Analysis: {output_path.stem}"
        )
        created_files.append(plot_path)

    return created_files
