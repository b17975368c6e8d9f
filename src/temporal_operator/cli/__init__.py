import json
import sys
from pathlib import Path

import typer
import yaml
from typing_extensions import Annotated

from dotenv import load_dotenv, find_dotenv

load_dotenv(find_dotenv())

app = typer.Typer(
    help="Temporal operator: reconciles TemporalClusters and TemporalNamespaces",
    add_completion=False,
)


def _load_manifest(path, kind):
    with open(path) as f:
        documents = [doc for doc in yaml.safe_load_all(f) if doc]
    for doc in documents:
        if doc.get("kind") == kind:
            return doc
    raise typer.BadParameter(f"No {kind} found in {path}")


@app.command("operator")
def run_operator():
    """Run the Kubernetes operator (connects to cluster)."""
    from temporal_operator.main import main

    main()


@app.command("render")
def render(
    manifest: Annotated[Path, typer.Argument(help="TemporalCluster manifest (YAML)")],
):
    """Print the child objects a TemporalCluster manifest produces."""
    import kubernetes
    from temporal_operator.controllers.defaults import normalize_cluster_defaults
    from temporal_operator.models.cluster import TemporalCluster
    from temporal_operator.resources import cluster_builders

    try:
        body = _load_manifest(manifest, "TemporalCluster")
        metadata = body.setdefault("metadata", {})
        metadata.setdefault("namespace", "default")
        metadata.setdefault("uid", "<cluster-uid>")
        cluster = TemporalCluster.from_body(body)
        normalize_cluster_defaults(cluster)

        serializer = kubernetes.client.ApiClient()
        objects = []
        for builder in cluster_builders(cluster):
            if not builder.enabled():
                continue
            obj = builder.build()
            builder.update(obj)
            objects.append(serializer.sanitize_for_serialization(obj))

        typer.echo(yaml.safe_dump_all(objects, default_flow_style=False, sort_keys=False))
    except typer.BadParameter:
        raise
    except Exception as e:
        typer.echo(f"Failed to render {manifest}: {e}")
        sys.exit(1)


@app.command("search-attributes-diff")
def search_attributes_diff(
    manifest: Annotated[Path, typer.Argument(help="TemporalNamespace manifest (YAML)")],
    current: Annotated[
        str,
        typer.Option("-c", "--current", help="JSON mapping of the server's attributes"),
    ] = "{}",
):
    """Show which custom search attributes a pass would remove and add."""
    from temporal_operator.controllers.search_attributes import (
        parse_search_attribute_type,
        plan_search_attributes,
    )
    from temporal_operator.errors import TemporalOperatorError

    body = _load_manifest(manifest, "TemporalNamespace")
    declared = (body.get("spec") or {}).get("customSearchAttributes") or {}

    try:
        existing = {
            name: parse_search_attribute_type(name, type_name)
            for name, type_name in json.loads(current).items()
        }
        plan = plan_search_attributes(declared, existing)
    except (TemporalOperatorError, ValueError) as e:
        typer.echo(f"Invalid search attributes: {e}")
        raise typer.Exit(1)

    if plan.empty:
        typer.echo("Search attributes are up to date")
        return
    for name in plan.to_remove:
        typer.echo(f"  - {name}")
    for name, attribute_type in plan.to_add.items():
        typer.echo(f"  + {name} ({attribute_type})")
