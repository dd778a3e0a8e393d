"""Caption Compiler - turns narration into timed cues and an ASS subtitle track."""

from viral_video.models.schemas import CaptionCue
from viral_video.utils.text_utils import split_sentences

MAX_CUES = 10
MIN_CUE_SECONDS = 2

ASS_STYLE_FORMAT = (
    "Format: Name, Fontname, Fontsize, PrimaryColour, SecondaryColour, OutlineColour, BackColour, "
    "Bold, Italic, Underline, StrikeOut, ScaleX, ScaleY, Spacing, Angle, BorderStyle, Outline, Shadow, "
    "Alignment, MarginL, MarginR, MarginV, Encoding"
)
# White text, translucent black outline/box, bottom-centre (alignment 2)
ASS_CAPTION_STYLE = (
    "Style: Caption,Montserrat SemiBold,64,&H00FFFFFF,&H00000000,&H96000000,&H64000000,"
    "-1,0,0,0,100,100,0,0,1,6,0,2,80,80,120,0"
)
ASS_EVENT_FORMAT = "Format: Layer, Start, End, Style, Name, MarginL, MarginR, MarginV, Effect, Text"


def split_for_captions(text: str, total_seconds: int) -> list[CaptionCue]:
    """
    Split narration into contiguous cues covering [0, total_seconds).

    At most MAX_CUES fragments are kept; text beyond the tenth sentence
    is not captioned. Every cue but the last lasts
    ``max(2, total // n)`` seconds (clamped to the total) and the last cue
    always ends at ``total_seconds``.

    Args:
        text: Full narration text
        total_seconds: Video length in seconds

    Returns:
        Ordered caption cues
    """
    fragments = split_sentences(text, limit=MAX_CUES)
    if not fragments:
        return [CaptionCue(start=0, end=total_seconds, text=text)]

    each = max(MIN_CUE_SECONDS, total_seconds // len(fragments))
    cues = []
    t = 0
    for i, fragment in enumerate(fragments):
        start = t
        if i == len(fragments) - 1:
            end = total_seconds
        else:
            end = min(total_seconds, t + each)
        cues.append(CaptionCue(start=start, end=end, text=fragment))
        t = end
    return cues


def format_ass_timestamp(seconds: float) -> str:
    """Format seconds as HH:MM:SS.cc, e.g. 00:01:05.50."""
    hours = int(seconds // 3600)
    minutes = int((seconds % 3600) // 60)
    secs = seconds % 60
    return f"{hours:02d}:{minutes:02d}:{secs:05.2f}"


def to_ass(cues: list[CaptionCue], width: int = 1080, height: int = 1920) -> str:
    """
    Serialize cues into an ASS subtitle document.

    Args:
        cues: Caption cues in order
        width: Canvas width (PlayResX)
        height: Canvas height (PlayResY)

    Returns:
        ASS document text, newline-terminated
    """
    header = "\n".join(
        [
            "[Script Info]",
            "Title: Captions",
            "ScriptType: v4.00+",
            f"PlayResX: {width}",
            f"PlayResY: {height}",
            "ScaledBorderAndShadow: yes",
            "",
            "[V4+ Styles]",
            ASS_STYLE_FORMAT,
            ASS_CAPTION_STYLE,
            "",
            "[Events]",
            ASS_EVENT_FORMAT,
        ]
    )

    lines = []
    for cue in cues:
        text = cue.text.replace("\n", "\\N")
        lines.append(
            f"Dialogue: 0,{format_ass_timestamp(cue.start)},{format_ass_timestamp(cue.end)},Caption,,0,0,0,,{text}"
        )
    return header + "\n" + "\n".join(lines) + "\n"
