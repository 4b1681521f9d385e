from enum import StrEnum

class PipelineStage(StrEnum):
    metadata_extraction = "metadataExtraction"
    sidecar             = "sidecar"
    face_detection      = "faceDetection"
    facial_recognition  = "facialRecognition"
    smart_album_match   = "smartAlbumMatch"

    @classmethod
    def upstream_of_matching(cls) -> tuple["PipelineStage", ...]:
        return (cls.metadata_extraction, cls.sidecar, cls.face_detection, cls.facial_recognition)

class JobStatus(StrEnum):
    success = "success"
    skipped = "skipped"
    failed  = "failed"

class EvaluationState(StrEnum):
    idle                 = "idle"
    waiting_for_upstream = "waitingForUpstream"
    evaluating           = "evaluating"
    reconciling          = "reconciling"
    done                 = "done"
    failed               = "failed"

class Feature(StrEnum):
    smart_search = "smartSearch"

class Permission(StrEnum):
    album_read   = "album.read"
    album_update = "album.update"

class AssetType(StrEnum):
    image = "IMAGE"
    video = "VIDEO"
    audio = "AUDIO"
    other = "OTHER"

class OrderDirection(StrEnum):
    asc  = "asc"
    desc = "desc"
