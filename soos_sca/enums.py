"""Wire-level enumerations shared with the SOOS service."""

from __future__ import annotations

from enum import Enum


class ScanStatus(str, Enum):
    Unknown = "Unknown"
    Queued = "Queued"
    NoFiles = "NoFiles"
    Running = "Running"
    LocatingIssues = "LocatingIssues"
    Finished = "Finished"
    FailedWithIssues = "FailedWithIssues"
    Incomplete = "Incomplete"
    Error = "Error"

    @classmethod
    def _missing_(cls, value: object) -> ScanStatus:
        return cls.Unknown


class ScanType(str, Enum):
    CSA = "Csa"
    DAST = "Dast"
    SAST = "Sast"
    SBOM = "Sbom"
    SCA = "Sca"


class SeverityEnum(str, Enum):
    Unknown = "Unknown"
    None_ = "None"
    Info = "Info"
    Low = "Low"
    Medium = "Medium"
    High = "High"
    Critical = "Critical"


class IntegrationName(str, Enum):
    AzureDevOps = "AzureDevOps"
    AWSCodeBuild = "AWSCodeBuild"
    Bamboo = "Bamboo"
    BitBucket = "BitBucket"
    CircleCI = "CircleCI"
    CodeShip = "CodeShip"
    GitHub = "GitHub"
    GitLab = "GitLab"
    Jenkins = "Jenkins"
    SoosCsa = "SoosCsa"
    SoosDast = "SoosDast"
    SoosSast = "SoosSast"
    SoosSca = "SoosSca"
    SoosSbom = "SoosSbom"
    TeamCity = "TeamCity"
    TravisCI = "TravisCI"
    VisualStudio = "VisualStudio"
    VisualStudioCode = "VisualStudioCode"


class IntegrationType(str, Enum):
    None_ = "None"
    IDE = "IDE"
    Script = "Script"
    Webhook = "Webhook"
    Plugin = "Plugin"
    AppRepo = "AppRepo"
    AppUpload = "AppUpload"


class ContributingDeveloperSource(str, Enum):
    Unknown = "Unknown"
    GitHubWebhook = "GitHubWebhook"
    EnvironmentVariable = "EnvironmentVariable"
    OperatingSystem = "OperatingSystem"


class ManifestStatus(str, Enum):
    Unknown = "Unknown"
    Valid = "Valid"
    OnlyDevDependencies = "OnlyDevDependencies"
    OnlyLockFiles = "OnlyLockFiles"
    OnlyNonLockFiles = "OnlyNonLockFiles"
    NoPackages = "NoPackages"
    UnknownManifestType = "UnknownManifestType"
    UnsupportedManifestVersion = "UnsupportedManifestVersion"
    ParsingError = "ParsingError"
    Empty = "Empty"
    Duplicate = "Duplicate"


class HashAlgorithmEnum(str, Enum):
    Unknown = "Unknown"
    Md5 = "Md5"
    Sha1 = "Sha1"
    Sha256 = "Sha256"
    Sha512 = "Sha512"


class HashEncodingEnum(str, Enum):
    Utf8 = "Utf8"
    Base64 = "Base64"
    Binary = "Binary"
    Hex = "Hex"


class FileMatchTypeEnum(str, Enum):
    Manifest = "Manifest"
    FileHash = "FileHash"
    ManifestAndFileHash = "ManifestAndFileHash"


class OnFailure(str, Enum):
    Continue = "continue_on_failure"
    Fail = "fail_the_build"


class OutputFormat(str, Enum):
    SARIF = "SARIF"


class LogLevel(str, Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARN = "WARN"
    FAIL = "FAIL"
    ERROR = "ERROR"
