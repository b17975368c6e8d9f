import kopf
import logging
import kubernetes

from temporal_operator import handlers  # noqa: F401  registers the kopf handlers
from temporal_operator.config import OperatorConfig
from temporal_operator.runtime import OperatorRuntime
from temporal_operator.services.object_store import KubernetesObjectStore
from temporal_operator.services.temporal_client import TemporalClientFactory

logger = logging.getLogger(__name__)


def configure_logging(config):
    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def load_kubernetes_config():
    try:
        kubernetes.config.load_incluster_config()
        logger.info("Loaded in-cluster Kubernetes config")
    except kubernetes.config.ConfigException:
        try:
            kubernetes.config.load_kube_config()
            logger.info("Loaded local Kubernetes config")
        except Exception as e:
            logger.warning(f"Could not load Kubernetes config: {e}")


@kopf.on.startup()
async def startup_fn(settings: kopf.OperatorSettings, memo: kopf.Memo, **kwargs):
    """Configure the operator and start the reconcile workers."""
    logger.info("Temporal Operator is starting up...")

    config = OperatorConfig.from_env()
    load_kubernetes_config()

    settings.batching.worker_limit = config.worker_limit
    settings.posting.enabled = config.posting_enabled
    settings.watching.server_timeout = config.server_timeout

    runtime = OperatorRuntime(
        KubernetesObjectStore(),
        TemporalClientFactory(
            rpc_timeout=config.temporal_rpc_timeout,
            address_override=config.temporal_address_override,
        ),
        config,
    )
    await runtime.start()
    memo.runtime = runtime

    logger.info(f"Worker limit: {settings.batching.worker_limit}")
    logger.info(f"Reconcile workers per kind: {config.reconcile_workers}")
    logger.info(f"Posting enabled: {settings.posting.enabled}")
    logger.info("Temporal Operator startup complete")


@kopf.on.cleanup()
async def cleanup_fn(memo: kopf.Memo, **kwargs):
    """Stop the reconcile workers."""
    logger.info("Temporal Operator is shutting down...")

    runtime = getattr(memo, "runtime", None)
    if runtime is not None:
        await runtime.stop()

    logger.info("Temporal Operator shutdown complete")


def main():
    config = OperatorConfig.from_env()
    configure_logging(config)
    try:
        if config.watch_namespace:
            kopf.run(namespaces=[config.watch_namespace])
        else:
            kopf.run(clusterwide=True)
    except KeyboardInterrupt:
        logger.info("Operator stopped by user")
    except Exception as e:
        logger.error(f"Operator failed: {e}")
        raise


if __name__ == "__main__":
    main()
