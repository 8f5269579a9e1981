"""AetherDraw - Freehand air drawing driven by hand gestures."""

__version__ = "0.1.0"

from aetherdraw.gestures import Gesture, GestureRule, FingerState, FingerPose, GESTURE_RULES
from aetherdraw.landmarks import Landmark, MalformedFrameError, to_landmark_array
from aetherdraw.classifier import GestureClassifier, classify
from aetherdraw.surface import RasterSurface, CompositeMode, LineCap, LineJoin
from aetherdraw.engine import StrokeEngine, StrokeSegment, StrokeSessionState, Tool, ToolSettings
from aetherdraw.palette import ColorPalette
from aetherdraw.config import DrawingConfig, load_config
from aetherdraw.profiler import FrameProfiler
from aetherdraw.pipeline import DrawingPipeline, FrameResult
from aetherdraw.recorder import SessionRecorder, SessionPlayer
