"""
URL Guard Module

사용자가 입력한 URL이 서버 측 요청(SSRF)에 악용되지 않도록 검증합니다.

검증 순서:
1. 빈 입력 / 길이 제한 (URL_MAX_LENGTH)
2. URL 파싱 및 호스트명 존재 여부
3. 스킴 허용 목록 (http, https)
4. 차단 호스트명 (클라우드 메타데이터, localhost 등)
5. 사설/루프백/링크로컬/CGNAT 대역 (호스트명 패턴 + IP 리터럴 파싱)

validate()는 네트워크를 건드리지 않는 순수 함수입니다.
리다이렉트가 발생하면 각 hop마다 다시 호출됩니다.

DNS rebinding 대응:
    guard_request()는 validate() 이후 호스트명을 실제로 해석하여
    해석된 주소가 사설 대역에 속하는지 한 번 더 확인합니다.
    (settings.URL_GUARD_RESOLVE_DNS 로 on/off)
"""

import asyncio
import ipaddress
import re
import socket
from typing import Callable, Optional, Union
from urllib.parse import urlsplit

from loguru import logger

from app.core.config import settings
from app.services.clipper.errors import ValidationError
from app.services.clipper.schemas import CandidateUrl, GuardReason, UrlCheckResult

IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]

ALLOWED_SCHEMES = ("http", "https")

# 클라우드 메타데이터 엔드포인트 및 로컬 호스트
BLOCKED_HOSTNAMES = frozenset(
    {
        "localhost",
        "metadata.google.internal",
        "metadata.google.com",
        "169.254.169.254",
        "metadata",
        "instance-data",
    }
)
BLOCKED_HOST_SUFFIXES = (".localhost", ".internal")

# 호스트명 문자열 기준 1차 필터 (IP 리터럴이 아니어도 검사)
PRIVATE_HOST_PATTERNS = [
    re.compile(r"^127\."),
    re.compile(r"^10\."),
    re.compile(r"^172\.(1[6-9]|2\d|3[01])\."),
    re.compile(r"^192\.168\."),
    re.compile(r"^169\.254\."),
    re.compile(r"^0\."),
    re.compile(r"^100\.(6[4-9]|[7-9]\d|1[01]\d|12[0-7])\."),
    re.compile(r"^\[?::1\]?$"),
    re.compile(r"^\[?f[cd][0-9a-f]{2}:", re.IGNORECASE),
    re.compile(r"^\[?fe80:", re.IGNORECASE),
]

# 파싱된 IP 기준 2차 필터
PRIVATE_NETWORKS = [
    ipaddress.ip_network(cidr)
    for cidr in (
        "10.0.0.0/8",
        "172.16.0.0/12",
        "192.168.0.0/16",
        "127.0.0.0/8",
        "169.254.0.0/16",
        "0.0.0.0/8",
        "100.64.0.0/10",
        "::1/128",
        "::/128",
        "fc00::/7",
        "fe80::/10",
    )
]

# inet_aton이 받아들이는 축약형 IPv4 (127.1, 2130706433, 0x7f.0.0.1, 0177.0.0.1)
_IPV4_SHORTHAND = re.compile(
    r"^(0x[0-9a-f]+|\d+)(\.(0x[0-9a-f]+|\d+)){0,3}$", re.IGNORECASE
)


# ─────────────────────────────────────────────────────────────────────────────
# IP 판별
# ─────────────────────────────────────────────────────────────────────────────


def parse_ip_literal(hostname: str) -> Optional[IPAddress]:
    """
    호스트명이 IP 리터럴이면 파싱된 주소를 반환합니다.

    리졸버가 받아들이는 축약형 IPv4 표기(127.1, 10진수 정수, 16진/8진 옥텟)도
    같은 방식으로 해석합니다.

    Args:
        hostname: 소문자 호스트명 (IPv6 대괄호 포함 가능)

    Returns:
        IPv4Address / IPv6Address 또는 IP 리터럴이 아니면 None
    """
    host = hostname.strip("[]")
    try:
        return ipaddress.ip_address(host)
    except ValueError:
        pass

    if _IPV4_SHORTHAND.match(host):
        try:
            return ipaddress.IPv4Address(socket.inet_aton(host))
        except OSError:
            return None
    return None


def is_private_ip(ip: IPAddress) -> bool:
    """사설/루프백/링크로컬/CGNAT/미지정 주소이면 True (IPv4-mapped IPv6 포함)"""
    if isinstance(ip, ipaddress.IPv6Address) and ip.ipv4_mapped is not None:
        ip = ip.ipv4_mapped
    return any(ip.version == net.version and ip in net for net in PRIVATE_NETWORKS)


# ─────────────────────────────────────────────────────────────────────────────
# 호스트 검사 규칙 (순서대로 적용, 첫 번째 거부 사유가 결과가 됨)
# ─────────────────────────────────────────────────────────────────────────────


def _check_blocked_hostname(host: str, ip: Optional[IPAddress]) -> Optional[GuardReason]:
    if host in BLOCKED_HOSTNAMES or host in settings.URL_GUARD_EXTRA_BLOCKED_HOSTS:
        return GuardReason.BLOCKED_HOSTNAME
    if host.endswith(BLOCKED_HOST_SUFFIXES):
        return GuardReason.BLOCKED_HOSTNAME
    return None


def _check_private_pattern(host: str, ip: Optional[IPAddress]) -> Optional[GuardReason]:
    if any(pattern.match(host) for pattern in PRIVATE_HOST_PATTERNS):
        return GuardReason.PRIVATE_ADDRESS
    return None


def _check_private_literal(host: str, ip: Optional[IPAddress]) -> Optional[GuardReason]:
    if ip is not None and is_private_ip(ip):
        return GuardReason.PRIVATE_ADDRESS
    return None


HOST_CHECKS: list[Callable[[str, Optional[IPAddress]], Optional[GuardReason]]] = [
    _check_blocked_hostname,
    _check_private_pattern,
    _check_private_literal,
]


# ─────────────────────────────────────────────────────────────────────────────
# 공개 API
# ─────────────────────────────────────────────────────────────────────────────


def _reject(url_string: str, reason: GuardReason) -> UrlCheckResult:
    logger.debug(f"URL 거부 ({reason.value}): {url_string[:200]}")
    return UrlCheckResult(valid=False, reason=reason)


def validate(url_string: Optional[str]) -> UrlCheckResult:
    """
    URL을 SSRF 정책에 따라 검증합니다. (네트워크 호출 없음)

    Args:
        url_string: 검증할 URL 문자열

    Returns:
        UrlCheckResult (valid=False이면 reason에 거부 사유)

    Example:
        >>> validate("https://example.com/a").valid
        True
        >>> validate("http://127.0.0.1/admin").reason
        <GuardReason.PRIVATE_ADDRESS: 'private address'>
    """
    if not url_string or not url_string.strip():
        return _reject("", GuardReason.EMPTY)

    if len(url_string) > settings.URL_MAX_LENGTH:
        return _reject(url_string, GuardReason.TOO_LONG)

    raw = url_string.strip()
    try:
        parts = urlsplit(raw)
        hostname = parts.hostname
        port = parts.port
    except ValueError:
        return _reject(raw, GuardReason.INVALID_FORMAT)

    scheme = parts.scheme.lower()
    if not scheme:
        return _reject(raw, GuardReason.INVALID_FORMAT)
    if scheme not in ALLOWED_SCHEMES:
        return _reject(raw, GuardReason.SCHEME_NOT_ALLOWED)

    if not hostname:
        return _reject(raw, GuardReason.INVALID_FORMAT)

    # FQDN 표기의 끝 점 제거 (localhost. → localhost)
    host = hostname.rstrip(".")
    if not host:
        return _reject(raw, GuardReason.INVALID_FORMAT)

    ip = parse_ip_literal(host)
    for check in HOST_CHECKS:
        reason = check(host, ip)
        if reason is not None:
            return _reject(raw, reason)

    return UrlCheckResult(
        valid=True,
        candidate=CandidateUrl(
            raw=raw,
            scheme=scheme,
            hostname=host,
            port=port,
            literal_ip=str(ip) if ip is not None else None,
        ),
    )


def require_valid_url(url_string: Optional[str]) -> CandidateUrl:
    """
    validate()의 예외 버전

    Raises:
        ValidationError: URL이 정책에 맞지 않는 경우
    """
    result = validate(url_string)
    if not result.valid:
        raise ValidationError(url_string or "", result.reason)
    return result.candidate


async def ensure_public_resolution(candidate: CandidateUrl) -> None:
    """
    호스트명을 DNS로 해석하여 사설 대역으로 향하지 않는지 확인합니다.

    해석 자체가 실패한 경우는 여기서 거부하지 않습니다.
    이후 실제 요청이 같은 이유로 실패하고 수집 실패(FetchError)로 처리됩니다.

    Raises:
        ValidationError: 해석된 주소 중 하나라도 사설 대역인 경우
    """
    if candidate.literal_ip:
        return

    loop = asyncio.get_running_loop()
    try:
        infos = await loop.getaddrinfo(
            candidate.hostname, candidate.port, type=socket.SOCK_STREAM
        )
    except (socket.gaierror, UnicodeError) as e:
        logger.debug(f"DNS 해석 실패 (요청 단계로 위임): {candidate.hostname} - {e}")
        return

    for *_, sockaddr in infos:
        address = str(sockaddr[0]).split("%", 1)[0]
        try:
            ip = ipaddress.ip_address(address)
        except ValueError:
            continue
        if is_private_ip(ip):
            logger.warning(f"사설 주소로 해석되는 호스트 차단: {candidate.hostname} → {ip}")
            raise ValidationError(
                candidate.raw,
                GuardReason.PRIVATE_ADDRESS,
                detail=f"{candidate.hostname} resolves to {ip}",
            )


async def guard_request(url: str) -> CandidateUrl:
    """
    네트워크 요청 직전에 호출하는 검증 (각 리다이렉트 hop, 렌더러 실행 전)

    Raises:
        ValidationError: 거부된 URL
    """
    candidate = require_valid_url(url)
    if settings.URL_GUARD_RESOLVE_DNS:
        await ensure_public_resolution(candidate)
    return candidate
