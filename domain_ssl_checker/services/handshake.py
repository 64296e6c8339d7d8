"""
TLS握手服务
"""
import ssl
import socket
import logging
from typing import Optional

from cryptography import x509

from ..interfaces import HandshakeExecutorInterface
from ..models import CheckTarget, HandshakeOutcome
from .error_handler import ConnectError, HandshakeError, NoCertificateError


class HandshakeExecutor(HandshakeExecutorInterface):
    """TLS握手执行器实现"""

    def __init__(self, connect_timeout_ms: int = 5000, read_timeout_ms: int = 7000):
        """
        初始化握手执行器

        Args:
            connect_timeout_ms: TCP连接超时时间（毫秒）
            read_timeout_ms: 连接建立后的读写超时时间（毫秒）
        """
        self.connect_timeout = connect_timeout_ms / 1000.0
        self.read_timeout = read_timeout_ms / 1000.0
        self.logger = logging.getLogger(__name__)

    def attempt_handshake(self, host: str, port: int, connect_address: Optional[str] = None,
                          trust_all: bool = False) -> HandshakeOutcome:
        """
        连接目标并完成一次TLS握手，返回叶子证书

        SNI始终使用原始主机名，即使实际连接的是备用IP。

        Args:
            host: 主机名（用于SNI和默认信任库下的主机名校验）
            port: 端口
            connect_address: 实际连接地址，为空时连接主机名
            trust_all: 是否接受任意证书链（仅用于获取证书查看）

        Returns:
            HandshakeOutcome: 叶子证书及其是否通过默认信任库校验

        Raises:
            ConnectError: 连接失败或超时
            HandshakeError: TLS协商失败
            NoCertificateError: 对端未提供可用证书
        """
        target = CheckTarget(host=host, port=port, connect_address=connect_address)
        context = self._create_context(trust_all)

        self.logger.debug(
            f"握手 {target.host}:{target.port} (连接地址 {target.address}, "
            f"{'宽松信任' if trust_all else '默认信任'})"
        )

        der_cert = self._fetch_peer_certificate(target, context)
        certificate = self._load_certificate(der_cert)

        return HandshakeOutcome(leaf_certificate=certificate, chain_trusted=not trust_all)

    def _create_context(self, trust_all: bool) -> ssl.SSLContext:
        """
        按信任策略创建SSL上下文

        Args:
            trust_all: True 时不校验证书链与主机名

        Returns:
            ssl.SSLContext: SSL上下文
        """
        if not trust_all:
            return ssl.create_default_context()

        context = ssl.SSLContext(ssl.PROTOCOL_TLS_CLIENT)
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
        return context

    def _fetch_peer_certificate(self, target: CheckTarget, context: ssl.SSLContext) -> Optional[bytes]:
        """
        建立连接并读取对端叶子证书（DER格式）

        连接在任何退出路径上都会被关闭。
        """
        try:
            sock = socket.create_connection((target.address, target.port), timeout=self.connect_timeout)
        except socket.timeout as e:
            raise ConnectError(f"连接 {target.address}:{target.port} 超时") from e
        except (OSError, ValueError) as e:
            # 主机名无法IDNA编码时抛出 UnicodeError
            raise ConnectError(str(e)) from e

        with sock:
            sock.settimeout(self.read_timeout)
            try:
                with context.wrap_socket(sock, server_hostname=target.host) as ssock:
                    return ssock.getpeercert(binary_form=True)
            except socket.timeout as e:
                raise HandshakeError(f"读取 {target.address}:{target.port} 超时") from e
            except (ssl.SSLError, ssl.CertificateError, OSError, ValueError) as e:
                raise HandshakeError(str(e)) from e

    def _load_certificate(self, der_cert: Optional[bytes]) -> x509.Certificate:
        """
        解析DER格式证书

        Raises:
            NoCertificateError: 证书为空或不是X.509证书
        """
        if not der_cert:
            raise NoCertificateError("No X.509 certificate presented by peer")

        try:
            return x509.load_der_x509_certificate(der_cert)
        except ValueError as e:
            raise NoCertificateError(f"No X.509 certificate presented by peer: {e}") from e
