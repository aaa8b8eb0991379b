"""Object format and association codes, format guessing and MTP date strings."""

from __future__ import annotations

import os
import re
import time
from datetime import datetime
from enum import IntEnum, unique

__all__ = [
    "MAX_OBJECT_SIZE",
    "ObjectFormat",
    "AssociationType",
    "object_format_from_filename",
    "parse_datetime",
    "format_datetime",
]

MAX_OBJECT_SIZE = 0xFFFFFFFF


@unique
class ObjectFormat(IntEnum):
    """Format code of an object stored on the device."""

    Any = 0x0000
    Undefined = 0x3000
    Association = 0x3001
    Script = 0x3002
    Executable = 0x3003
    Text = 0x3004
    Html = 0x3005
    Dpof = 0x3006
    Aiff = 0x3007
    Wav = 0x3008
    Mp3 = 0x3009
    Avi = 0x300A
    Mpeg = 0x300B
    Asf = 0x300C
    UndefinedImage = 0x3800
    ExifJpeg = 0x3801
    TiffEp = 0x3802
    Flashpix = 0x3803
    Bmp = 0x3804
    Ciff = 0x3805
    Reserved = 0x3806
    Gif = 0x3807
    Jfif = 0x3808
    Pcd = 0x3809
    Pict = 0x380A
    Png = 0x380B
    Reserved2 = 0x380C
    Tiff = 0x380D
    TiffIt = 0x380E
    Jp2 = 0x380F
    Jpx = 0x3810

    Wma = 0xB901
    Ogg = 0xB902
    Aac = 0xB903
    Audible = 0xB904
    Flac = 0xB906

    Wmv = 0xB980
    Mp4 = 0xB982
    Mp2 = 0xB983
    ThreeGp = 0xB984

    AudioAlbum = 0xBA03

    Wpl = 0xBA10
    M3u = 0xBA11
    Mpl = 0xBA12
    Asx = 0xBA13
    Pls = 0xBA14

    Xml = 0xBA82
    Doc = 0xBA83
    Mht = 0xBA84
    Xls = 0xBA85
    Ppt = 0xBA86

    VCard2 = 0xBB82


@unique
class AssociationType(IntEnum):
    """Kind of association (folder) object."""

    GenericFolder = 0x0001
    Album = 0x0002
    TimeSequence = 0x0003
    HorizontalPanoramic = 0x0004
    VerticalPanoramic = 0x0005
    Panoramic2D = 0x0006
    AncillaryData = 0x0007


_EXTENSIONS = {
    "mp3": ObjectFormat.Mp3,
    "txt": ObjectFormat.Text,
    "jpeg": ObjectFormat.Jfif,
    "jpg": ObjectFormat.Jfif,
    "gif": ObjectFormat.Gif,
    "bmp": ObjectFormat.Bmp,
    "png": ObjectFormat.Png,
    "wma": ObjectFormat.Wma,
    "ogg": ObjectFormat.Ogg,
    "flac": ObjectFormat.Flac,
    "aac": ObjectFormat.Aac,
    "wav": ObjectFormat.Aiff,
    "wmv": ObjectFormat.Wmv,
    "mp4": ObjectFormat.Mp4,
    "3gp": ObjectFormat.ThreeGp,
    "asf": ObjectFormat.Asf,
}

_TIMESPEC = re.compile(r"(\d{4})(\d{2})(\d{2})T(\d{2})(\d{2})(\d{2})")


def _extension(filename: str) -> str:
    _, dot, ext = filename.rpartition(".")
    return ext.lower() if dot else ""


def object_format_from_filename(filename: str) -> ObjectFormat:
    """Guess the object format of a file from its path and extension."""
    ext = _extension(filename)
    if ext == "m3u":
        return ObjectFormat.M3u
    if os.path.isdir(filename):
        return ObjectFormat.Association
    return _EXTENSIONS.get(ext, ObjectFormat.Undefined)


def parse_datetime(timespec: str) -> int:
    """Convert a YYYYMMDDTHHMMSS string (local time) to a timestamp; 0 if unparsable."""
    match = _TIMESPEC.match(timespec)
    if match is None:
        return 0
    year, month, day, hour, minute, second = (int(part) for part in match.groups())
    try:
        datetime(year, month, day, hour, minute, second)
        return int(time.mktime((year, month, day, hour, minute, second, 0, 0, 0)))
    except (ValueError, OverflowError):
        return 0


def format_datetime(timestamp: int) -> str:
    """Format a timestamp as a UTC YYYYMMDDTHHMMSSZ string."""
    try:
        moment = time.gmtime(timestamp)
    except (OverflowError, OSError, ValueError) as ex:
        raise ValueError("gmtime failed") from ex
    return time.strftime("%Y%m%dT%H%M%SZ", moment)