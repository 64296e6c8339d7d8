"""
TLS拦截识别
"""
from typing import Optional

from cryptography import x509

# 已知中间设备在证书主题/颁发者中留下的标记（小写）
INTERCEPTION_MARKERS = (
    "fortinet",
    "blocked page",
)


def is_likely_intercepted(certificate: Optional[x509.Certificate]) -> bool:
    """
    判断证书是否疑似由TLS拦截设备签发

    这是基于已知标记的启发式判断，不作为安全控制。

    Args:
        certificate: 叶子证书

    Returns:
        bool: 主题或颁发者包含已知标记时为 True
    """
    if certificate is None:
        return False

    subject = certificate.subject.rfc4514_string()
    issuer = certificate.issuer.rfc4514_string()
    haystack = f"{subject} {issuer}".lower()
    return any(marker in haystack for marker in INTERCEPTION_MARKERS)
