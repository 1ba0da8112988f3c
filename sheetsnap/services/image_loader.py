"""
Embedded picture loading.

Asks the workbook for the pictures anchored at each address of a sheet and
decodes them with Pillow. A picture that cannot be decoded is left out with
a warning; the rest of the sheet still loads.
"""

import io
import logging
from collections.abc import Iterable

from PIL import Image, UnidentifiedImageError

from sheetsnap.adapters.base import WorkbookReader
from sheetsnap.exceptions.snapshot_exceptions import ImageDecodeError
from sheetsnap.models.grid_models import ExcelImage, PictureRecord
from sheetsnap.utils import make_address

logger = logging.getLogger(__name__)


def decode_picture(record: PictureRecord, row: int, col: int) -> ExcelImage:
    """
    Decode one picture record.

    Raises:
        ImageDecodeError: If the bytes are empty or not a supported image.
    """
    address = make_address(row, col)
    if not record.data:
        raise ImageDecodeError(address, image_format=record.format, reason="Picture has no data")

    try:
        bitmap = Image.open(io.BytesIO(record.data))
        bitmap.load()
    except (UnidentifiedImageError, OSError, ValueError) as e:
        raise ImageDecodeError(address, image_format=record.format, reason=str(e)) from e

    return ExcelImage(
        name=record.name,
        data=record.data,
        format=record.format or (bitmap.format or "").lower(),
        image=bitmap,
        row=row,
        col=col,
        offset_x=record.offset_x,
        offset_y=record.offset_y,
        width=record.width,
        height=record.height,
        natural_width=bitmap.width,
        natural_height=bitmap.height,
    )


def load_images(
    reader: WorkbookReader,
    sheet_name: str,
    addresses: Iterable[tuple[int, int]],
) -> list[ExcelImage]:
    """
    Load the pictures anchored at the given addresses.

    Args:
        reader: Workbook to read pictures from.
        sheet_name: Worksheet name.
        addresses: (row, col) pairs to query; visited in row-major order.

    Returns:
        Decoded pictures, in row-major anchor order.
    """
    images: list[ExcelImage] = []
    for row, col in sorted(addresses):
        for record in reader.get_pictures(sheet_name, make_address(row, col)):
            try:
                images.append(decode_picture(record, row, col))
            except ImageDecodeError as e:
                logger.warning("Skipping picture on %r: %s", sheet_name, e.message)

    if images:
        logger.debug("Loaded %d picture(s) from %r", len(images), sheet_name)
    return images
