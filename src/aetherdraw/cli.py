"""AetherDraw CLI, the main entry point.

Usage:
    aetherdraw run          Draw in the air with your webcam
    aetherdraw replay       Render a recorded session to an image
    aetherdraw gestures     Show the gesture decision table
    aetherdraw benchmark    Run classification/rendering benchmarks
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Optional

try:
    import typer
except ImportError:
    raise ImportError("typer is required for CLI. Install with: pip install typer")

from aetherdraw.config import DrawingConfig, load_config

app = typer.Typer(
    name="aetherdraw",
    help="✏️  Freehand air drawing driven by hand gestures.",
    add_completion=False,
)


def _setup_logging(level: str):
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _load(config_path: Optional[str]) -> DrawingConfig:
    try:
        return load_config(config_path)
    except ValueError as e:
        typer.echo(f"❌ {e}", err=True)
        raise typer.Exit(1)


@app.command()
def run(
    camera: Optional[int] = typer.Option(None, help="Camera device index (overrides config)"),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to YAML config"),
    record: Optional[str] = typer.Option(None, help="Record landmarks to this file"),
    snapshot_dir: str = typer.Option(".", help="Where 's' saves drawings"),
    log_level: str = typer.Option("info", help="Log level"),
):
    """Open the webcam and draw with hand gestures.

    Keys: q quit, c clear, p pen, e eraser, s save drawing.
    """
    import cv2
    from aetherdraw.engine import Tool
    from aetherdraw.hud import draw_hud
    from aetherdraw.pipeline import DrawingPipeline
    from aetherdraw.recorder import SessionRecorder

    _setup_logging(log_level)
    config = _load(config_path)
    index = config.camera_index if camera is None else camera

    cap = cv2.VideoCapture(index)
    if not cap.isOpened():
        typer.echo(f"❌ Could not open camera {index}", err=True)
        raise typer.Exit(1)
    cap.set(cv2.CAP_PROP_FRAME_WIDTH, config.camera_width)
    cap.set(cv2.CAP_PROP_FRAME_HEIGHT, config.camera_height)

    recorder = None
    typer.echo("🎥 Point with your index finger to draw. Press 'q' to quit.")

    with DrawingPipeline(config=config) as pipeline:
        try:
            while True:
                ret, frame = cap.read()
                if not ret:
                    continue

                frame_rgb = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
                result = pipeline.process_frame(frame_rgb)

                if record:
                    if recorder is None:
                        h, w = frame.shape[:2]
                        recorder = SessionRecorder(width=w, height=h)
                        recorder.start()
                    recorder.add_frame(result.landmarks, result.gesture.value)

                shown = frame
                if config.mirror:
                    shown = cv2.flip(frame, 1)
                shown = pipeline.surface.overlay(shown)
                draw_hud(
                    shown, pipeline.current_gesture, pipeline.tools.tool,
                    pipeline.tools.color, pipeline.stats.fps,
                )
                cv2.imshow("AetherDraw", shown)

                key = cv2.waitKey(1) & 0xFF
                if key == ord("q"):
                    break
                elif key == ord("c"):
                    pipeline.clear()
                elif key == ord("p"):
                    pipeline.select_tool(Tool.PEN)
                elif key == ord("e"):
                    pipeline.select_tool(Tool.ERASER)
                elif key == ord("s"):
                    path = Path(snapshot_dir) / f"aetherdraw-{int(time.time())}.png"
                    pipeline.surface.save(path)
                    typer.echo(f"💾 Saved drawing to {path}")
        except KeyboardInterrupt:
            pass
        finally:
            cap.release()
            cv2.destroyAllWindows()

    if recorder is not None:
        recorder.stop()
        if record.endswith(".npz"):
            recorder.save_compact(record)
        else:
            recorder.save(record)
        typer.echo(f"📼 Recorded {recorder.frame_count} frames to {record}")

    stats = pipeline.stats
    typer.echo(
        f"Processed {stats.total_frames} frames, {stats.segments} segments, "
        f"{stats.color_changes} color changes"
    )


@app.command()
def replay(
    recording: str = typer.Argument(..., help="Path to recording file (.json or .npz)"),
    output: str = typer.Option("drawing.png", "--output", "-o", help="Output image path"),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to YAML config"),
    quiet: bool = typer.Option(False, help="Don't print the gesture timeline"),
):
    """Replay a recorded session through the stroke engine and save the drawing."""
    from aetherdraw.pipeline import DrawingPipeline
    from aetherdraw.recorder import SessionPlayer

    path = Path(recording)
    if not path.exists():
        typer.echo(f"❌ Recording not found: {recording}", err=True)
        raise typer.Exit(1)

    config = _load(config_path)
    try:
        player = SessionPlayer.load(path)
    except (ValueError, KeyError, OSError) as e:
        typer.echo(f"❌ Could not read recording: {e}", err=True)
        raise typer.Exit(1)

    typer.echo(f"▶️  Replaying {path.name} ({player.frame_count} frames, {player.duration:.1f}s)")

    pipeline = DrawingPipeline(config=config, enable_profiling=False)
    pipeline.ensure_surface(player.width, player.height)

    if not quiet:
        def on_gesture(gesture):
            typer.echo(f"   🤚 {gesture.value}")

        pipeline.on_gesture(on_gesture)
        pipeline.on_color_change(lambda color: typer.echo(f"   🎨 {color}"))

    for frame in player.play():
        pipeline.process_landmarks(frame.hand, frame.timestamp * 1000.0)

    saved = pipeline.surface.save(output)
    stats = pipeline.stats
    typer.echo(f"\n✅ Replay complete. {stats.segments} segments, {stats.gesture_changes} gesture changes.")
    typer.echo(f"💾 Drawing saved to: {saved}")


@app.command()
def gestures():
    """Print the gesture decision table in priority order."""
    from aetherdraw.gestures import describe_rules

    typer.echo("🖐  Gestures (first match wins, thumb ignored):\n")
    for line in describe_rules():
        typer.echo(f"   {line}")


@app.command()
def benchmark(
    iterations: int = typer.Option(1000, min=1, help="Number of ticks"),
    width: int = typer.Option(1280, help="Surface width"),
    height: int = typer.Option(720, help="Surface height"),
):
    """Run synthetic ticks through classification and rendering."""
    import numpy as np
    from aetherdraw.pipeline import DrawingPipeline

    typer.echo(f"⚡ Running benchmark: {iterations} ticks on {width}x{height}")

    pipeline = DrawingPipeline()
    pipeline.ensure_surface(width, height)

    rng = np.random.default_rng(42)
    hands = rng.random((iterations, 21, 3)).astype(np.float32)

    times = []
    for i in range(iterations):
        t0 = time.perf_counter()
        pipeline.process_landmarks(hands[i], i * 16.0)
        times.append(time.perf_counter() - t0)

    avg_ms = sum(times) / len(times) * 1000
    p95_ms = sorted(times)[int(len(times) * 0.95)] * 1000
    fps = 1000 / avg_ms if avg_ms > 0 else 0

    typer.echo(f"\n📊 Results:")
    typer.echo(f"   Average latency: {avg_ms:.2f} ms")
    typer.echo(f"   P95 latency:     {p95_ms:.2f} ms")
    typer.echo(f"   Throughput:      {fps:.0f} FPS")

    typer.echo(f"\n📈 Stage breakdown:")
    for name, stats in pipeline.stats.profiler_summary.items():
        typer.echo(f"   {name:25s} avg={stats['avg_ms']:.3f}ms  p95={stats['p95_ms']:.3f}ms")


def main():
    app()


if __name__ == "__main__":
    main()
