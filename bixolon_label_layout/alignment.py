"""
Leading-space alignment of wrapped lines.
"""

# Standard Library
import math

# local repo modules
import bixolon_label_layout as bll
import bixolon_label_layout.metrics


TextMeasurer = bll.metrics.TextMeasurer

ALIGN_LEFT = "left"
ALIGN_CENTER = "center"
ALIGN_RIGHT = "right"
ALIGNMENTS = (ALIGN_LEFT, ALIGN_CENTER, ALIGN_RIGHT)


#============================================
def padding_count(line_width: float, block_width: float, space_width: float, align: str) -> int:
	"""
	Number of leading spaces for one line.

	Center uses half the free width, right uses all of it, both rounded
	down to whole spaces.

	Args:
		line_width: Measured width of the line.
		block_width: Block width.
		space_width: Measured width of one space.
		align: ALIGN_CENTER or ALIGN_RIGHT.

	Returns:
		Space count, never negative.
	"""
	if space_width <= 0 or line_width >= block_width:
		return 0
	free = block_width - line_width
	if align == ALIGN_CENTER:
		count = math.floor(free / (2 * space_width))
	else:
		count = math.floor(free / space_width)
	return max(0, count)


#============================================
def align_lines(lines: list[str], block_width: float, measurer: TextMeasurer, align: str) -> list[str]:
	"""
	Pad lines with leading spaces for center or right alignment.

	Left alignment strips leading whitespace instead. Blank paragraph
	boundary lines are never padded.

	Args:
		lines: Wrapped lines.
		block_width: Block width.
		measurer: Width source used for the wrap.
		align: One of ALIGNMENTS.

	Returns:
		New list of lines.
	"""
	if align not in ALIGNMENTS:
		raise ValueError(f"unknown alignment: {align}")
	if align == ALIGN_LEFT:
		return [line.lstrip() for line in lines]
	space_width = measurer.measure(" ")
	aligned = []
	for line in lines:
		if not line:
			aligned.append(line)
			continue
		count = padding_count(measurer.measure(line), block_width, space_width, align)
		aligned.append(" " * count + line)
	return aligned
