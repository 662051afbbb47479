# ABOUTME: ARN helpers built on the botocore ARN parser
# ABOUTME: Used for profile-as-role detection and cache key synthesis

from botocore.utils import ArnParser, InvalidArnException

_parser = ArnParser()


def parse_arn(value: str) -> dict[str, str]:
    """Parse an ARN into partition, service, region, account and resource."""
    return _parser.parse_arn(value)


def is_arn(value: str | None) -> bool:
    if not value or not value.startswith("arn:"):
        return False
    try:
        _parser.parse_arn(value)
    except InvalidArnException:
        return False
    return True
