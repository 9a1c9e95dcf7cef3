"""Fake HTTP sessions, SMTP server and payload builders for tests."""

import base64
import json


GITHUB = "https://api.github.com"
NPM = "https://registry.npmjs.org"
OPENROUTER = "https://openrouter.ai/api/v1/chat/completions"


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=None, links=None):
        self.status_code = status_code
        self._payload = payload
        self.links = links or {}
        if text is None:
            text = json.dumps(payload) if payload is not None else ""
        self.text = text

    def json(self):
        if self._payload is None:
            raise ValueError("No JSON object could be decoded")
        return self._payload


class FakeSession:
    """Stands in for requests.Session; answers from a URL -> response map."""

    def __init__(self, routes=None):
        self.routes = dict(routes or {})
        self.headers = {}
        self.calls = []
        self.closed = False

    def _answer(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        answer = self.routes.get(url)
        if answer is None:
            return FakeResponse(404, {"message": "Not Found"})
        if isinstance(answer, Exception):
            raise answer
        return answer

    def get(self, url, params=None, timeout=None):
        return self._answer("GET", url, params=params, timeout=timeout)

    def post(self, url, json=None, timeout=None):
        return self._answer("POST", url, json=json, timeout=timeout)

    def urls(self, method="GET"):
        return [url for m, url, _ in self.calls if m == method]

    def close(self):
        self.closed = True


class FakeSMTP:
    """Records messages instead of talking to Gmail."""

    sent = []
    fail_with = None

    def __init__(self, host, port, **kwargs):
        self.host = host
        self.port = port

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def ehlo(self):
        pass

    def starttls(self, context=None):
        pass

    def login(self, user, password):
        if FakeSMTP.fail_with is not None:
            raise FakeSMTP.fail_with

    def send_message(self, msg):
        FakeSMTP.sent.append(msg)


def manifest_response(manifest):
    content = base64.b64encode(json.dumps(manifest).encode("utf-8")).decode("ascii")
    # GitHub wraps base64 content at 60 characters
    wrapped = "\n".join(content[i:i + 60] for i in range(0, len(content), 60))
    return FakeResponse(200, {"name": "package.json", "encoding": "base64", "content": wrapped})


def packument(latest, description=None, homepage=None):
    payload = {"name": "pkg", "dist-tags": {"latest": latest}}
    if description:
        payload["description"] = description
    if homepage:
        payload["homepage"] = homepage
    return FakeResponse(200, payload)


def dependabot_alert(package, severity="high", cve_id=None, number=1, patched="9.9.9"):
    return {
        "number": number,
        "state": "open",
        "dependency": {"package": {"ecosystem": "npm", "name": package}, "manifest_path": "package-lock.json"},
        "security_advisory": {
            "ghsa_id": f"GHSA-test-{number:04d}",
            "cve_id": cve_id,
            "summary": f"Vulnerability in {package}",
            "severity": severity,
        },
        "security_vulnerability": {
            "package": {"ecosystem": "npm", "name": package},
            "severity": severity,
            "vulnerable_version_range": "< 9.9.9",
            "first_patched_version": {"identifier": patched} if patched else None,
        },
        "html_url": f"https://github.com/octo-org/app/security/dependabot/{number}",
    }


def chat_completion(text):
    return FakeResponse(200, {
        "choices": [{"message": {"role": "assistant", "content": text}}],
        "usage": {"prompt_tokens": 10, "completion_tokens": 20, "total_tokens": 30},
    })
