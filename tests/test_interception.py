"""
TLS拦截识别测试
"""
from domain_ssl_checker.services.interception import is_likely_intercepted


class TestInterception:
    """拦截识别测试类"""

    def test_none_certificate(self):
        """测试没有证书"""
        assert is_likely_intercepted(None) is False

    def test_regular_certificate(self, make_certificate):
        """测试普通证书"""
        cert = make_certificate(subject_cn="example.com", issuer_cn="R3", issuer_org="Let's Encrypt")

        assert is_likely_intercepted(cert) is False

    def test_fortinet_issuer(self, make_certificate):
        """测试Fortinet签发的证书（大小写不敏感）"""
        cert = make_certificate(subject_cn="example.com", issuer_cn="FGT60F", issuer_org="Fortinet Ltd.")

        assert is_likely_intercepted(cert) is True

    def test_blocked_page_subject(self, make_certificate):
        """测试主题中包含拦截页面标记"""
        cert = make_certificate(subject_cn="Blocked Page", issuer_cn="Gateway CA")

        assert is_likely_intercepted(cert) is True
