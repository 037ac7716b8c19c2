"""Static tracking/referral blocklists and built-in redirector rules."""

from __future__ import annotations

from dataclasses import dataclass

from nudelink.utils.urls import URLValue

TRACKING_PREFIX = "utm_"

TRACKING_PARAMS = frozenset(
    {
        # Google Analytics / Ads
        "utm_source",
        "utm_medium",
        "utm_campaign",
        "utm_term",
        "utm_content",
        "utm_id",
        "gclid",
        "gclsrc",
        "dclid",
        "gbraid",
        "wbraid",
        "gad_source",
        "gad_campaignid",
        "_ga",
        "_gl",
        "_gid",
        # Social / ad networks
        "fbclid",
        "igshid",
        "igsh",
        "msclkid",
        "twclid",
        "ttclid",
        "li_fat_id",
        "yclid",
        "srsltid",
        # Email / marketing automation
        "mc_cid",
        "mc_eid",
        "mkt_tok",
        "_hsenc",
        "_hsmi",
        "hsctatracking",
        "vero_id",
        "vero_conv",
        "oly_anon_id",
        "oly_enc_id",
        "s_cid",
        "ncid",
        "sst_src",
        "sst_mdm",
        "sst_cmpgn",
        "sst_trm",
        "sst_cntnt",
    }
)

REFERRAL_PARAMS = frozenset(
    {
        "ref",
        "ref_",
        "ref_src",
        "ref_url",
        "referrer",
        "referer",
        "affid",
        "aff_id",
        "affiliate",
        "affiliate_id",
        "partner",
        "partnerid",
        "irclickid",
        "clickid",
        "subid",
        "ascsubtag",
    }
)


@dataclass(frozen=True)
class RedirectorRule:
    """A hard-coded click-tracking wrapper whose target sits in a query parameter."""

    provider: str
    target_params: tuple[str, ...]
    host_suffixes: tuple[str, ...] = ()
    hosts: tuple[str, ...] = ()
    path: str | None = None
    # Host OR path is enough (facebook's l.php lives on several hosts)
    host_or_path: bool = False

    def target(self, url: URLValue) -> str | None:
        """Return the wrapped URL string if *url* matches this rule."""
        hostname = url.hostname
        host_ok = hostname in self.hosts or any(hostname.endswith(s) for s in self.host_suffixes)
        path_ok = self.path is None or url.path == self.path
        if not ((host_ok or path_ok) if self.host_or_path else (host_ok and path_ok)):
            return None
        for name in self.target_params:
            value = url.get(name)
            if value:
                return value
        return None


# Priority order matters: first structural match wins
REDIRECTORS: tuple[RedirectorRule, ...] = (
    RedirectorRule("google", ("url", "q"), host_suffixes=("google.com", "google.com.au"), path="/url"),
    RedirectorRule("facebook", ("u",), hosts=("l.facebook.com",), path="/l.php", host_or_path=True),
    RedirectorRule("instagram", ("u",), host_suffixes=("instagram.com",)),
)
