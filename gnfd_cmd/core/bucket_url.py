"""
Bucket locator resolution.

Maps gnfd://bucket/object style locators to a bucket name. Naming rules
are left to the chain, which rejects invalid names in head_bucket.
"""

from .errors import InvalidBucketUrlError

URL_SCHEME = "gnfd://"


def resolve_bucket_name(url: str) -> str:
    """Return the bucket name named by a locator.

    Accepts "gnfd://bucket", "gnfd://bucket/object" and the same forms
    without the scheme.

    Raises:
        InvalidBucketUrlError: If no bucket name can be extracted
    """
    if not url or not url.strip():
        raise InvalidBucketUrlError("bucket url is required and cannot be empty")

    path = url.strip()
    if path.lower().startswith(URL_SCHEME):
        path = path[len(URL_SCHEME):]
    elif "://" in path:
        raise InvalidBucketUrlError(f"unsupported url scheme in {url!r}, expected {URL_SCHEME}")

    bucket_name = path.split("/", 1)[0]
    if not bucket_name:
        raise InvalidBucketUrlError(f"no bucket name in {url!r}")
    return bucket_name
