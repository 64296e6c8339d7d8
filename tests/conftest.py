"""
测试公共夹具
"""
from datetime import datetime, timezone, timedelta
from typing import Optional

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import NameOID

_TEST_KEY = ec.generate_private_key(ec.SECP256R1())


def _name(common_name: str, organization: Optional[str] = None) -> x509.Name:
    attributes = []
    if organization:
        attributes.append(x509.NameAttribute(NameOID.ORGANIZATION_NAME, organization))
    attributes.append(x509.NameAttribute(NameOID.COMMON_NAME, common_name))
    return x509.Name(attributes)


def build_certificate(subject_cn: str = "example.com",
                      issuer_cn: str = "Test CA",
                      issuer_org: Optional[str] = None,
                      not_after: Optional[datetime] = None) -> x509.Certificate:
    """生成测试用证书（证书时间精度为秒）"""
    if not_after is None:
        not_after = datetime.now(timezone.utc).replace(microsecond=0) + timedelta(days=90)

    return (
        x509.CertificateBuilder()
        .subject_name(_name(subject_cn))
        .issuer_name(_name(issuer_cn, issuer_org))
        .public_key(_TEST_KEY.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(not_after - timedelta(days=365))
        .not_valid_after(not_after)
        .sign(_TEST_KEY, hashes.SHA256())
    )


@pytest.fixture
def make_certificate():
    """返回证书构造函数"""
    return build_certificate


@pytest.fixture
def certificate_der():
    """返回生成DER格式证书的函数"""
    def _der(**kwargs) -> bytes:
        return build_certificate(**kwargs).public_bytes(serialization.Encoding.DER)
    return _der
