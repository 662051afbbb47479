# ABOUTME: Cookie persisting HTTP transport used for all identity provider traffic
# ABOUTME: Redirects are not followed unless asked, and failed redirect hops raise RedirectError

"""HTTP transport for identity provider round trips."""

import logging
from urllib.parse import urljoin

import requests
from requests.cookies import RequestsCookieJar

from .errors import RedirectError, TransportError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30
MAX_REDIRECTS = 30


class HttpSession:
    """A requests session bound to a (possibly shared) cookie jar.

    With `follow_redirects` enabled, redirects are followed hop by hop so that a failure to
    reach a redirect target surfaces as a RedirectError carrying the full target URL. Some
    IdPs are only usable this way, since the final hop goes to an OAuth redirect URI which is
    not reachable from this host.
    """

    def __init__(
        self,
        cookies: RequestsCookieJar | None = None,
        follow_redirects: bool = False,
        timeout: int = DEFAULT_TIMEOUT,
        session: requests.Session | None = None,
    ):
        self.session = session or requests.Session()
        if cookies is not None:
            self.session.cookies = cookies
        self.follow_redirects = follow_redirects
        self.timeout = timeout

    @property
    def cookies(self) -> RequestsCookieJar:
        return self.session.cookies

    @cookies.setter
    def cookies(self, jar: RequestsCookieJar) -> None:
        self.session.cookies = jar

    def with_redirects(self, follow: bool) -> "HttpSession":
        """Return a transport sharing this one's cookies with the given redirect policy."""
        if follow == self.follow_redirects:
            return self
        return HttpSession(follow_redirects=follow, timeout=self.timeout, session=self.session)

    def get(self, url: str, **kwargs) -> requests.Response:
        return self.request("GET", url, **kwargs)

    def post(self, url: str, **kwargs) -> requests.Response:
        return self.request("POST", url, **kwargs)

    def request(self, method: str, url: str, **kwargs) -> requests.Response:
        kwargs.setdefault("timeout", self.timeout)
        kwargs["allow_redirects"] = False

        try:
            res = self.session.request(method, url, **kwargs)
        except requests.RequestException as e:
            raise TransportError(f"{method} {url}: {e}", url=url) from e

        if self.follow_redirects:
            res = self._follow(res, kwargs["timeout"])
        return res

    def _follow(self, res: requests.Response, timeout: int) -> requests.Response:
        hops = 0
        while res.is_redirect:
            hops += 1
            if hops > MAX_REDIRECTS:
                raise TransportError(f"exceeded {MAX_REDIRECTS} redirects", url=res.url)

            target = urljoin(res.url, res.headers["location"])
            res.close()
            logger.debug(f"following redirect to {target.split('?')[0]}")

            try:
                res = self.session.get(target, allow_redirects=False, timeout=timeout)
            except requests.RequestException as e:
                raise RedirectError(target, e) from e
        return res


def check_response(res: requests.Response) -> requests.Response:
    """Raise TransportError for any non-2xx response."""
    if not 200 <= res.status_code < 300:
        res.close()
        raise TransportError(f"http status {res.status_code} {res.reason}", url=res.url, status=res.status_code)
    return res
