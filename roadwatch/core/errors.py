"""
Domain errors for RoadWatch.
"""


class PolarLatitudeError(ValueError):
    """극점 근처 위도에서는 경도 보정 항이 발산하므로 추정을 거부합니다."""


class ReportNotFoundError(LookupError):
    """존재하지 않는 신고 ID"""


class CandidateNotFoundError(LookupError):
    """존재하지 않거나 이미 처리된 후보 ID"""


class InferenceError(RuntimeError):
    """외부 이미지 추론 서비스 호출 실패"""
