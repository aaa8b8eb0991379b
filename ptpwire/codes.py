"""Numeric codes of the PTP/MTP protocol: operations, properties, containers and responses."""

from enum import IntEnum, unique

__all__ = [
    "OperationCode",
    "DeviceProperty",
    "DataTypeCode",
    "ObjectProperty",
    "ContainerType",
    "ResponseType",
]


@unique
class OperationCode(IntEnum):
    """MTP operation code."""

    GetDeviceInfo = 0x1001
    OpenSession = 0x1002
    CloseSession = 0x1003
    GetStorageIDs = 0x1004
    GetStorageInfo = 0x1005
    GetNumObjects = 0x1006
    GetObjectHandles = 0x1007
    GetObjectInfo = 0x1008
    GetObject = 0x1009
    GetThumb = 0x100A
    DeleteObject = 0x100B
    SendObjectInfo = 0x100C
    SendObject = 0x100D
    InitiateCapture = 0x100E
    FormatStore = 0x100F
    ResetDevice = 0x1010
    SelfTest = 0x1011
    SetObjectProtection = 0x1012
    PowerDown = 0x1013
    GetDevicePropDesc = 0x1014
    GetDevicePropValue = 0x1015
    SetDevicePropValue = 0x1016
    ResetDevicePropValue = 0x1017
    TerminateOpenCapture = 0x1018
    MoveObject = 0x1019
    CopyObject = 0x101A
    GetPartialObject = 0x101B
    InitiateOpenCapture = 0x101C

    CancelTransaction = 0x4001

    GetPartialObject64 = 0x95C1
    SendPartialObject = 0x95C2
    TruncateObject = 0x95C3
    BeginEditObject = 0x95C4
    EndEditObject = 0x95C5

    GetObjectPropsSupported = 0x9801
    GetObjectPropDesc = 0x9802
    GetObjectPropValue = 0x9803
    SetObjectPropValue = 0x9804

    GetObjectPropList = 0x9805
    SetObjectPropList = 0x9806
    GetInterdependentPropDesc = 0x9807
    SendObjectPropList = 0x9808

    GetObjectReferences = 0x9810
    SetObjectReferences = 0x9811
    Skip = 0x9820


@unique
class DeviceProperty(IntEnum):
    """Device property code."""

    Undefined = 0x5000
    BatteryLevel = 0x5001
    FunctionalMode = 0x5002
    ImageSize = 0x5003
    CompressionSetting = 0x5004
    WhiteBalance = 0x5005
    RgbGain = 0x5006
    FNumber = 0x5007
    FocalLength = 0x5008
    FocusDistance = 0x5009
    FocusMode = 0x500A
    ExposureMeteringMode = 0x500B
    FlashMode = 0x500C
    ExposureTime = 0x500D
    ExposureProgramMode = 0x500E
    ExposureIndex = 0x500F
    ExposureBiasCompensation = 0x5010
    Datetime = 0x5011
    CaptureDelay = 0x5012
    StillCaptureMode = 0x5013
    Contrast = 0x5014
    Sharpness = 0x5015
    DigitalZoom = 0x5016
    EffectMode = 0x5017
    BurstNumber = 0x5018
    BurstInterval = 0x5019
    TimelapseNumber = 0x501A
    TimelapseInterval = 0x501B
    FocusMeteringMode = 0x501C
    UploadUrl = 0x501D
    Artist = 0x501E
    CopyrightInfo = 0x501F
    SynchronizationPartner = 0xD401
    DeviceFriendlyName = 0xD402
    Volume = 0xD403
    SupportedFormatsOrdered = 0xD404
    DeviceIcon = 0xD405
    PlaybackRate = 0xD410
    PlaybackObject = 0xD411
    PlaybackContainerIndex = 0xD412
    SessionInitiatorVersionInfo = 0xD406
    PerceivedDeviceType = 0xD407


@unique
class DataTypeCode(IntEnum):
    """Type of a property value on the wire."""

    Undefined = 0x0000

    Int8 = 0x0001
    Uint8 = 0x0002
    Int16 = 0x0003
    Uint16 = 0x0004
    Int32 = 0x0005
    Uint32 = 0x0006
    Int64 = 0x0007
    Uint64 = 0x0008
    Int128 = 0x0009
    Uint128 = 0x000A

    ArrayInt8 = 0x4001
    ArrayUint8 = 0x4002
    ArrayInt16 = 0x4003
    ArrayUint16 = 0x4004
    ArrayInt32 = 0x4005
    ArrayUint32 = 0x4006
    ArrayInt64 = 0x4007
    ArrayUint64 = 0x4008
    ArrayInt128 = 0x4009
    ArrayUint128 = 0x400A

    String = 0xFFFF


@unique
class ObjectProperty(IntEnum):
    """Object property code."""

    StorageId = 0xDC01
    ObjectFormat = 0xDC02
    ProtectionStatus = 0xDC03
    ObjectSize = 0xDC04
    AssociationType = 0xDC05
    AssociationDesc = 0xDC06
    ObjectFilename = 0xDC07
    DateCreated = 0xDC08
    DateModified = 0xDC09
    Keywords = 0xDC0A
    ParentObject = 0xDC0B
    AllowedFolderContents = 0xDC0C
    Hidden = 0xDC0D
    SystemObject = 0xDC0E

    PersistentUniqueObjectId = 0xDC41
    SyncId = 0xDC42
    Name = 0xDC44
    Artist = 0xDC46
    DateAuthored = 0xDC47
    DateAdded = 0xDC4E

    RepresentativeSampleFormat = 0xDC81
    RepresentativeSampleData = 0xDC86

    DisplayName = 0xDCE0
    BodyText = 0xDCE1
    Subject = 0xDCE2
    Priority = 0xDCE3

    MediaGUID = 0xDD72
    All = 0xFFFF


@unique
class ContainerType(IntEnum):
    """Kind of a USB container carrying an MTP message."""

    Command = 1
    Data = 2
    Response = 3
    Event = 4


@unique
class ResponseType(IntEnum):
    """Response code sent by the device at the end of a transaction."""

    OK = 0x2001
    GeneralError = 0x2002
    SessionNotOpen = 0x2003
    InvalidTransaction = 0x2004
    OperationNotSupported = 0x2005
    ParameterNotSupported = 0x2006
    IncompleteTransfer = 0x2007
    InvalidStorageID = 0x2008
    InvalidObjectHandle = 0x2009
    DevicePropNotSupported = 0x200A
    InvalidObjectFormatCode = 0x200B
    StoreFull = 0x200C
    ObjectWriteProtected = 0x200D
    StoreReadOnly = 0x200E
    AccessDenied = 0x200F
    NoThumbnailPresent = 0x2010
    SelfTestFailed = 0x2011
    PartialDeletion = 0x2012
    StoreNotAvailable = 0x2013
    SpecificationByFormatUnsupported = 0x2014
    NoValidObjectInfo = 0x2015
    InvalidCodeFormat = 0x2016
    UnknownVendorCode = 0x2017
    CaptureAlreadyTerminated = 0x2018
    DeviceBusy = 0x2019
    InvalidParentObject = 0x201A
    InvalidDevicePropFormat = 0x201B
    InvalidDevicePropValue = 0x201C
    InvalidParameter = 0x201D
    SessionAlreadyOpen = 0x201E
    TransactionCancelled = 0x201F
    SpecificationOfDestinationUnsupported = 0x2020

    InvalidObjectPropCode = 0xA801
    InvalidObjectPropFormat = 0xA802
    InvalidObjectPropValue = 0xA803
    InvalidObjectReference = 0xA804
    GroupNotSupported = 0xA805
    InvalidDataset = 0xA806
    UnsupportedSpecByGroup = 0xA807
    UnsupportedSpecByDepth = 0xA808
    ObjectTooLarge = 0xA809
    ObjectPropNotSupported = 0xA80A