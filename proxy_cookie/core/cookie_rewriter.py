import logging
from typing import Any, Optional

from proxy_cookie.core.cookies import Cookie, is_valid_domain, sanitize_path
from proxy_cookie.core.errors import ConfigurationError
from proxy_cookie.core.rewrite_chain import DEFAULT_TIMEOUT, RewriteChain

logger = logging.getLogger(__name__)

CONFIG_SECTIONS = {"path": {"prefix", "rewrites"}, "domain": {"rewrites"}}


def prefix_path(path: str, prefix: str) -> str:
    """Put `prefix` in front of a cookie path.

    Slashes around the prefix are ignored, so "/api/" and "api" behave the
    same. The root path maps to "/<prefix>" rather than "/<prefix>/".
    """
    prefix = prefix.strip("/")
    if path == "/":
        return "/" + prefix
    return "/" + prefix + path


class CookieRewriter:
    def __init__(
        self,
        path_prefix: Optional[str] = None,
        path_chain: Optional[RewriteChain] = None,
        domain_chain: Optional[RewriteChain] = None,
    ) -> None:
        if path_prefix is not None and not path_prefix.strip("/"):
            if path_prefix:
                logger.warning(f"Path prefix {path_prefix!r} is empty once slashes are removed; ignoring it")
            path_prefix = None
        self.path_prefix = path_prefix
        self.path_chain = path_chain
        self.domain_chain = domain_chain

    @classmethod
    def from_config(cls, config: Optional[dict[str, Any]], timeout: float = DEFAULT_TIMEOUT) -> "CookieRewriter":
        config = config or {}
        if not isinstance(config, dict):
            raise ConfigurationError("cookie rewrite config must be a mapping")
        for section, value in config.items():
            if section not in CONFIG_SECTIONS:
                raise ConfigurationError(f"unknown config section {section!r}")
            if not isinstance(value, dict):
                raise ConfigurationError(f"{section!r} config must be a mapping")
            unknown = set(value) - CONFIG_SECTIONS[section]
            if unknown:
                raise ConfigurationError(f"unknown {section} option(s): {', '.join(sorted(unknown))}")

        path_config = config.get("path") or {}
        prefix = path_config.get("prefix")
        if prefix is not None and not isinstance(prefix, str):
            raise ConfigurationError("path prefix must be a string")

        return cls(
            path_prefix=prefix,
            path_chain=_build_chain("path", path_config.get("rewrites"), timeout),
            domain_chain=_build_chain("domain", (config.get("domain") or {}).get("rewrites"), timeout),
        )

    def transform(self, cookie: Cookie) -> Cookie:
        if self.path_prefix is not None or self.path_chain is not None:
            path = cookie.path or ""
            if self.path_prefix is not None:
                path = prefix_path(path, self.path_prefix)
            if self.path_chain is not None:
                path = self.path_chain.apply(path)
            clean = sanitize_path(path)
            if clean != path:
                logger.warning(f"Invalid characters dropped from rewritten path of cookie {cookie.name!r}")
            if clean != (cookie.path or ""):
                cookie = cookie.with_path(clean)

        if self.domain_chain is not None:
            original = cookie.domain or ""
            domain = self.domain_chain.apply(original)
            if domain and not is_valid_domain(domain):
                logger.warning(f"Rewritten domain {domain!r} of cookie {cookie.name!r} is invalid; omitting it")
                domain = ""
            if domain != original:
                # a rewritten domain is emitted without its leading dot
                cookie = cookie.with_domain(domain.lstrip("."))

        return cookie

    def describe(self) -> dict[str, Any]:
        return {
            "path": {
                "prefix": self.path_prefix,
                "rewrites": self.path_chain.describe() if self.path_chain else [],
            },
            "domain": {
                "rewrites": self.domain_chain.describe() if self.domain_chain else [],
            },
        }


def _build_chain(name: str, rewrites: Any, timeout: float) -> Optional[RewriteChain]:
    if not rewrites:
        return None
    if not isinstance(rewrites, list):
        raise ConfigurationError(f"{name} rewrites must be a list")
    pairs = []
    for rewrite in rewrites:
        if not isinstance(rewrite, dict) or not isinstance(rewrite.get("regex"), str):
            raise ConfigurationError(f"each {name} rewrite needs a 'regex' string, got {rewrite!r}")
        replacement = rewrite.get("replacement", "")
        if not isinstance(replacement, str):
            raise ConfigurationError(f"{name} rewrite replacement for {rewrite['regex']!r} must be a string")
        pairs.append((rewrite["regex"], replacement))
    return RewriteChain.compile(pairs, name=name, timeout=timeout)
