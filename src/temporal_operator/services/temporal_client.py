""" Client for the Temporal server's namespace and search attribute APIs.
"""

import logging
from contextlib import asynccontextmanager
from datetime import timedelta

from google.protobuf.duration_pb2 import Duration
from temporalio.api.namespace.v1 import NamespaceConfig, UpdateNamespaceInfo
from temporalio.api.operatorservice.v1 import (
    AddSearchAttributesRequest,
    DeleteNamespaceRequest,
    ListSearchAttributesRequest,
    RemoveSearchAttributesRequest,
)
from temporalio.api.replication.v1 import ClusterReplicationConfig, NamespaceReplicationConfig
from temporalio.api.workflowservice.v1 import RegisterNamespaceRequest, UpdateNamespaceRequest
from temporalio.service import ConnectConfig, RPCError, RPCStatusCode, ServiceClient

from temporal_operator.controllers.search_attributes import SearchAttributeType
from temporal_operator.errors import AlreadyExistsError, NotFoundError, RemoteError

logger = logging.getLogger(__name__)


def _duration(value):
    duration = Duration()
    duration.FromTimedelta(value)
    return duration


def _translate(err, operation):
    """Map an RPCError to the operator's error types."""
    if err.status == RPCStatusCode.ALREADY_EXISTS:
        return AlreadyExistsError(f"{operation}: {err.message}")
    if err.status == RPCStatusCode.NOT_FOUND:
        return NotFoundError(f"{operation}: {err.message}")
    return RemoteError(f"{operation}: {err.message}")


class TemporalNamespaceClient:
    """Wraps the workflow and operator services of one Temporal cluster."""

    def __init__(self, service_client, rpc_timeout=10.0):
        self._service = service_client
        self.rpc_timeout = timedelta(seconds=rpc_timeout)

    @classmethod
    async def connect(cls, address, rpc_timeout=10.0):
        try:
            service_client = await ServiceClient.connect(ConnectConfig(target_host=address))
        except RuntimeError as e:
            raise RemoteError(f"can't connect to Temporal at {address}: {e}") from e
        return cls(service_client, rpc_timeout=rpc_timeout)

    async def _call(self, rpc, request, operation):
        if self._service is None:
            raise RemoteError(f"{operation}: client is closed")
        try:
            return await rpc(request, timeout=self.rpc_timeout)
        except RPCError as e:
            raise _translate(e, operation) from e

    async def register_namespace(self, namespace):
        spec = namespace.spec
        request = RegisterNamespaceRequest(
            namespace=namespace.metadata.name,
            description=spec.description,
            owner_email=spec.ownerEmail,
            workflow_execution_retention_period=_duration(spec.retention()),
            clusters=[ClusterReplicationConfig(cluster_name=name) for name in spec.clusters],
            active_cluster_name=spec.activeClusterName,
            data=spec.data,
            security_token=spec.securityToken,
            is_global_namespace=spec.isGlobalNamespace,
        )
        await self._call(
            self._service.workflow_service.register_namespace,
            request,
            f"register namespace {namespace.metadata.name}",
        )
        logger.info(f"Registered Temporal namespace {namespace.metadata.name}")

    async def update_namespace(self, namespace):
        spec = namespace.spec
        request = UpdateNamespaceRequest(
            namespace=namespace.metadata.name,
            update_info=UpdateNamespaceInfo(
                description=spec.description,
                owner_email=spec.ownerEmail,
                data=spec.data,
            ),
            config=NamespaceConfig(workflow_execution_retention_ttl=_duration(spec.retention())),
            replication_config=NamespaceReplicationConfig(
                active_cluster_name=spec.activeClusterName,
                clusters=[ClusterReplicationConfig(cluster_name=name) for name in spec.clusters],
            ),
            security_token=spec.securityToken,
        )
        await self._call(
            self._service.workflow_service.update_namespace,
            request,
            f"update namespace {namespace.metadata.name}",
        )
        logger.info(f"Updated Temporal namespace {namespace.metadata.name}")

    async def delete_namespace(self, name):
        await self._call(
            self._service.operator_service.delete_namespace,
            DeleteNamespaceRequest(namespace=name),
            f"delete namespace {name}",
        )
        logger.info(f"Deleted Temporal namespace {name}")

    async def list_search_attributes(self, namespace_name):
        response = await self._call(
            self._service.operator_service.list_search_attributes,
            ListSearchAttributesRequest(namespace=namespace_name),
            f"list search attributes of {namespace_name}",
        )
        return {
            name: SearchAttributeType(value)
            for name, value in response.custom_attributes.items()
        }

    async def add_search_attributes(self, namespace_name, attributes):
        await self._call(
            self._service.operator_service.add_search_attributes,
            AddSearchAttributesRequest(
                namespace=namespace_name,
                search_attributes={name: int(t) for name, t in attributes.items()},
            ),
            f"add search attributes to {namespace_name}",
        )

    async def remove_search_attributes(self, namespace_name, names):
        await self._call(
            self._service.operator_service.remove_search_attributes,
            RemoveSearchAttributesRequest(namespace=namespace_name, search_attributes=list(names)),
            f"remove search attributes from {namespace_name}",
        )

    async def close(self):
        # ServiceClient has no explicit close; dropping it releases the connection
        self._service = None


class TemporalClientFactory:
    """Opens a scoped TemporalNamespaceClient for a TemporalCluster."""

    def __init__(self, rpc_timeout=10.0, address_override=None):
        self.rpc_timeout = rpc_timeout
        self.address_override = address_override

    def address_for(self, cluster):
        return self.address_override or cluster.frontend_address()

    @asynccontextmanager
    async def __call__(self, cluster):
        if cluster.mtls_with_cert_manager_enabled():
            raise RemoteError(
                f"cluster {cluster.key} requires mTLS, which this client does not support"
            )
        client = await TemporalNamespaceClient.connect(
            self.address_for(cluster), rpc_timeout=self.rpc_timeout
        )
        try:
            yield client
        finally:
            await client.close()
