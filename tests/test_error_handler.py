"""
错误处理服务测试
"""
import socket
import ssl

from domain_ssl_checker.services.error_handler import (
    ConnectError,
    DNSErrorHandler,
    HandshakeError,
    NetworkErrorHandler,
    NoCertificateError,
    ResolutionError,
    SSLCheckError,
    describe_error,
)


class TestDescribeError:
    """错误描述测试类"""

    def test_kind_and_detail(self):
        """测试包含类别和详情"""
        assert describe_error(HandshakeError("certificate verify failed")) == \
            "HandshakeError: certificate verify failed"

    def test_blank_detail(self):
        """测试详情为空时只返回类别"""
        assert describe_error(ConnectError()) == "ConnectError"
        assert describe_error(NoCertificateError("  ")) == "NoCertificateError"

    def test_taxonomy(self):
        """测试错误类型层次"""
        for error_type in (ConnectError, HandshakeError, NoCertificateError, ResolutionError):
            assert issubclass(error_type, SSLCheckError)


class TestNetworkErrorHandler:
    """网络错误处理器测试类"""

    def setup_method(self):
        """测试前准备"""
        self.handler = NetworkErrorHandler()

    def _wrapped(self, error_type, cause):
        try:
            try:
                raise cause
            except Exception as e:
                raise error_type(str(e)) from e
        except SSLCheckError as wrapped:
            return wrapped

    def test_handle_ssl_connection_error(self):
        """测试生成结构化错误信息"""
        error = self._wrapped(ConnectError, socket.timeout("timed out"))

        info = self.handler.handle_ssl_connection_error("example.com", 443, error)

        assert info['host'] == "example.com"
        assert info['port'] == 443
        assert info['error_type'] == "ConnectError"
        assert info['error_message'] == "ConnectError: timed out"
        assert info['trust_policy'] == "default"
        assert info['suggested_action'] == "检查网络连接，考虑增加超时时间"

    def test_suggested_action_for_verification_failure(self):
        """测试证书校验失败的建议"""
        error = self._wrapped(HandshakeError, ssl.SSLCertVerificationError(1, "certificate verify failed"))

        info = self.handler.handle_ssl_connection_error("example.com", 443, error, trust_all=True)

        assert info['trust_policy'] == "trust_all"
        assert "证书验证失败" in info['suggested_action']

    def test_suggested_action_for_missing_certificate(self):
        """测试未提供证书的建议"""
        info = self.handler.handle_ssl_connection_error("example.com", 443, NoCertificateError("empty"))

        assert info['suggested_action'] == "对端未提供证书，检查端口是否为TLS服务"


class TestDNSErrorHandler:
    """DNS错误处理器测试类"""

    def test_handle_dns_resolution_failure(self):
        """测试DNS解析失败处理"""
        info = DNSErrorHandler().handle_dns_resolution_failure("missing.invalid", ResolutionError("NXDOMAIN"))

        assert info['host'] == "missing.invalid"
        assert info['error_type'] == "ResolutionError"
        assert info['error_message'] == "ResolutionError: NXDOMAIN"
