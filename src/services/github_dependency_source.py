"""GitHub implementation of the dependency source.

Dependencies come from the GraphQL dependency-graph API. GitHub has no API for
the reverse direction, so dependents are read from the repository's public
"Used by" listing.
"""

from typing import Any, Dict, Iterable, List, Optional

import httpx
import structlog
from bs4 import BeautifulSoup

from configuration.github_config import GitHubSettings
from models.repository import Repository, RepositoryReference
from utils.exceptions import DependencySourceError, MalformedReferenceError

logger = structlog.get_logger(__name__)

DEPENDENCY_GRAPH_PREVIEW = "application/vnd.github.hawkgirl-preview+json"
USER_AGENT = "dependagraph"

GET_DEPENDENCIES_QUERY = """
query GetDependencies($org: String!, $name: String!, $manifests: Int!, $dependencies: Int!, $after: String) {
  repository(owner: $org, name: $name) {
    dependencyGraphManifests(first: $manifests, after: $after) {
      pageInfo {
        hasNextPage
        endCursor
      }
      nodes {
        id
        blobPath
        dependencies(first: $dependencies) {
          pageInfo {
            hasNextPage
            endCursor
          }
          nodes {
            packageName
            requirements
            repository {
              nameWithOwner
              url
              primaryLanguage {
                name
              }
            }
          }
        }
      }
    }
  }
}
"""

# Follow-up pages of a single manifest's dependencies.
GET_MANIFEST_DEPENDENCIES_QUERY = """
query GetManifestDependencies($id: ID!, $dependencies: Int!, $after: String) {
  node(id: $id) {
    ... on DependencyGraphManifest {
      dependencies(first: $dependencies, after: $after) {
        pageInfo {
          hasNextPage
          endCursor
        }
        nodes {
          packageName
          requirements
          repository {
            nameWithOwner
            url
            primaryLanguage {
              name
            }
          }
        }
      }
    }
  }
}
"""


def _dedupe(repositories: Iterable[Repository]) -> List[Repository]:
    """Collapse records sharing a fully-qualified name; first occurrence wins."""
    seen: Dict[str, Repository] = {}
    for repo in repositories:
        seen.setdefault(repo.fully_qualified_name, repo)
    return list(seen.values())


def _next_cursor(connection: Dict[str, Any]) -> Optional[str]:
    page_info = connection.get("pageInfo") or {}
    if page_info.get("hasNextPage") and page_info.get("endCursor"):
        return page_info["endCursor"]
    return None


def dependency_from_node(node: Dict[str, Any]) -> Optional[Repository]:
    """
    Convert a GraphQL dependency node into a Repository record.

    A dependency GitHub resolved to a repository is keyed by `nameWithOwner`;
    anything else keeps its ecosystem package name.
    """
    version = node.get("requirements") or None
    repo = node.get("repository") or {}
    name_with_owner = repo.get("nameWithOwner")
    if name_with_owner:
        org, _, name = name_with_owner.partition("/")
        language = (repo.get("primaryLanguage") or {}).get("name")
        return Repository(
            fully_qualified_name=name_with_owner,
            organization=org or None,
            name=name or None,
            url=repo.get("url"),
            version=version,
            language=language,
        )

    package_name = node.get("packageName")
    if not package_name:
        return None
    return Repository(fully_qualified_name=package_name, version=version)


def parse_dependents_page(html: str, base_url: str = "") -> tuple[List[Repository], Optional[str]]:
    """
    Extract dependent repositories and the next-page link from a "Used by" page.

    Args:
        html: Page body
        base_url: GitHub web URL used to build each dependent's repository URL

    Returns:
        (dependents on this page, href of the "Next" link or None)
    """
    soup = BeautifulSoup(html, "html.parser")
    dependents: List[Repository] = []
    for row in soup.select('[data-test-id="dg-repo-pkg-dependent"]'):
        link = row.select_one('a[data-hovercard-type="repository"]')
        if link is None:
            continue
        full_name = (link.get("href") or "").strip("/")
        try:
            ref = RepositoryReference.parse(full_name)
        except MalformedReferenceError:
            logger.debug("Skipping unrecognized dependent link", href=link.get("href"))
            continue
        url = f"{base_url}/{ref}" if base_url else None
        dependents.append(Repository.from_reference(ref, url=url))

    next_href = None
    for anchor in soup.select(".paginate-container a"):
        if anchor.get_text(strip=True) == "Next" and anchor.get("href"):
            next_href = anchor["href"]
            break
    return dependents, next_href


class GitHubDependencySource:
    """Dependency source backed by github.com."""

    def __init__(self, settings: GitHubSettings, client: Optional[httpx.AsyncClient] = None):
        """
        Initialize the GitHub dependency source.

        Args:
            settings: GitHub settings (token, endpoints, page sizes)
            client: Optional preconfigured HTTP client; one is created otherwise
        """
        self.settings = settings
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(
            timeout=settings.GITHUB_HTTP_TIMEOUT,
            headers={"User-Agent": USER_AGENT},
            follow_redirects=True,
        )

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    async def _query(self, ref: RepositoryReference, query: str, variables: Dict[str, Any]) -> Dict[str, Any]:
        """POST one GraphQL query and return its `data` object."""
        headers = {
            "Accept": DEPENDENCY_GRAPH_PREVIEW,
            "Authorization": f"Bearer {self.settings.GITHUB_API_SECRET}",
        }
        try:
            resp = await self.client.post(
                self.settings.GITHUB_GRAPHQL_URL,
                json={"query": query, "variables": variables},
                headers=headers,
            )
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPStatusError as e:
            raise DependencySourceError(
                f"GitHub GraphQL returned {e.response.status_code} for {ref}"
            ) from e
        except (httpx.RequestError, ValueError) as e:
            raise DependencySourceError(f"GitHub GraphQL request failed for {ref}: {e}") from e

        if data.get("errors"):
            messages = "; ".join(err.get("message", "") for err in data["errors"])
            raise DependencySourceError(f"GitHub GraphQL error for {ref}: {messages}")
        return data.get("data") or {}

    async def _remaining_dependencies(
        self, ref: RepositoryReference, manifest_id: str, after: str
    ) -> List[Dict[str, Any]]:
        nodes: List[Dict[str, Any]] = []
        cursor: Optional[str] = after
        while cursor:
            data = await self._query(ref, GET_MANIFEST_DEPENDENCIES_QUERY, {
                "id": manifest_id,
                "dependencies": self.settings.GITHUB_DEPENDENCIES_PAGE_SIZE,
                "after": cursor,
            })
            connection = (data.get("node") or {}).get("dependencies") or {}
            nodes.extend(connection.get("nodes") or [])
            cursor = _next_cursor(connection)
        return nodes

    async def get_dependencies(self, ref: RepositoryReference) -> List[Repository]:
        """Return everything declared in the repository's dependency manifests, across all pages."""
        records: List[Repository] = []
        manifest_count = 0
        after: Optional[str] = None

        while True:
            data = await self._query(ref, GET_DEPENDENCIES_QUERY, {
                "org": ref.organization,
                "name": ref.name,
                "manifests": self.settings.GITHUB_MANIFESTS_PAGE_SIZE,
                "dependencies": self.settings.GITHUB_DEPENDENCIES_PAGE_SIZE,
                "after": after,
            })
            repository = data.get("repository")
            if repository is None:
                raise DependencySourceError(f"repository {ref} not found")

            manifests = repository.get("dependencyGraphManifests") or {}
            for manifest in manifests.get("nodes") or []:
                manifest = manifest or {}
                manifest_count += 1
                connection = manifest.get("dependencies") or {}
                nodes = list(connection.get("nodes") or [])
                cursor = _next_cursor(connection)
                if cursor and manifest.get("id"):
                    nodes.extend(await self._remaining_dependencies(ref, manifest["id"], cursor))
                for node in nodes:
                    record = dependency_from_node(node or {})
                    if record is not None:
                        records.append(record)

            after = _next_cursor(manifests)
            if after is None:
                break

        dependencies = _dedupe(records)
        logger.debug(
            "Fetched dependencies",
            reference=str(ref),
            manifests=manifest_count,
            dependencies=len(dependencies),
        )
        return dependencies

    async def get_dependents(self, ref: RepositoryReference) -> List[Repository]:
        """Return repositories listed on the "Used by" pages, following pagination."""
        url: Optional[str] = f"{self.settings.GITHUB_WEB_URL}/{ref}/network/dependents"
        records: List[Repository] = []
        pages = 0

        while url and pages < self.settings.GITHUB_DEPENDENTS_MAX_PAGES:
            try:
                resp = await self.client.get(url)
                resp.raise_for_status()
            except httpx.HTTPStatusError as e:
                raise DependencySourceError(
                    f"GitHub dependents page returned {e.response.status_code} for {ref}"
                ) from e
            except httpx.RequestError as e:
                raise DependencySourceError(f"GitHub dependents request failed for {ref}: {e}") from e

            page, next_href = parse_dependents_page(resp.text, base_url=self.settings.GITHUB_WEB_URL)
            records.extend(page)
            pages += 1
            url = str(resp.url.join(next_href)) if next_href else None

        dependents = _dedupe(records)
        logger.debug("Fetched dependents", reference=str(ref), pages=pages, dependents=len(dependents))
        return dependents
