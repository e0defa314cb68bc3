"""
Test fixtures and configuration for pytest

The sample cluster mirrors the test-apps workloads (an nginx Deployment with
three replicas and a postgres Deployment with two, one of them stuck Pending)
plus a kube-system pod that the default settings ignore.
"""
import json
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from models import ClusterSnapshot


def make_raw_pod(name, namespace='test-apps', phase='Running', image='nginx:latest',
                 container='nginx', ready=True, restarts=0, with_status=True,
                 requests=None, limits=None, node='minikube'):
    """Build a pod the way `kubectl get pods -o json` returns it"""
    pod = {
        'metadata': {
            'name': name,
            'namespace': namespace,
            'labels': {'app': container},
        },
        'spec': {
            'containers': [{
                'name': container,
                'image': image,
                'resources': {
                    'requests': requests or {},
                    'limits': limits or {},
                },
            }],
        },
        'status': {
            'phase': phase,
            'conditions': [{'type': 'Ready', 'status': 'True' if ready else 'False'}],
        },
    }
    if phase != 'Pending':
        pod['spec']['nodeName'] = node
        pod['status']['podIP'] = '10.244.0.10'
        pod['status']['startTime'] = '2026-01-04T09:00:00Z'
    if with_status:
        state = {'running': {'startedAt': '2026-01-04T09:00:05Z'}} if phase == 'Running' \
            else {'waiting': {'reason': 'ContainerCreating'}}
        pod['status']['containerStatuses'] = [{
            'name': container,
            'ready': ready,
            'restartCount': restarts,
            'state': state,
        }]
    return pod


NGINX_REQUESTS = {'cpu': '100m', 'memory': '128Mi'}
NGINX_LIMITS = {'cpu': '200m', 'memory': '256Mi'}
POSTGRES_REQUESTS = {'cpu': '250m', 'memory': '256Mi'}
POSTGRES_LIMITS = {'cpu': '500m', 'memory': '512Mi'}


@pytest.fixture
def raw_namespaces():
    return {
        'kind': 'NamespaceList',
        'items': [
            {'metadata': {'name': 'default'}},
            {'metadata': {'name': 'kube-system'}},
            {'metadata': {'name': 'test-apps'}},
        ],
    }


@pytest.fixture
def raw_pods():
    """4 Running + 1 Pending in test-apps, 1 Running in kube-system"""
    return [
        make_raw_pod('nginx-deployment-7c79c4bf97-abcde', requests=NGINX_REQUESTS, limits=NGINX_LIMITS),
        make_raw_pod('nginx-deployment-7c79c4bf97-fghij', requests=NGINX_REQUESTS, limits=NGINX_LIMITS),
        make_raw_pod('nginx-deployment-7c79c4bf97-klmno', requests=NGINX_REQUESTS, limits=NGINX_LIMITS,
                     restarts=2),
        make_raw_pod('postgres-deployment-5b8f6d9c4-pqrst', image='postgres:latest', container='postgres',
                     requests=POSTGRES_REQUESTS, limits=POSTGRES_LIMITS),
        make_raw_pod('postgres-deployment-5b8f6d9c4-uvwxy', phase='Pending', image='postgres:latest',
                     container='postgres', ready=False, with_status=False,
                     requests=POSTGRES_REQUESTS, limits=POSTGRES_LIMITS),
        make_raw_pod('coredns-5dd5756b68-zzzzz', namespace='kube-system', image='registry.k8s.io/coredns/coredns:v1.11.1',
                     container='coredns'),
    ]


@pytest.fixture
def raw_nodes():
    return [{
        'metadata': {'name': 'minikube'},
        'status': {
            'capacity': {'cpu': '4', 'memory': '8Gi', 'pods': '110'},
            'allocatable': {'cpu': '3800m', 'memory': '7Gi', 'pods': '110'},
            'conditions': [
                {'type': 'MemoryPressure', 'status': 'False', 'reason': 'KubeletHasSufficientMemory'},
                {'type': 'Ready', 'status': 'True', 'reason': 'KubeletReady'},
            ],
            'addresses': [{'type': 'InternalIP', 'address': '192.168.49.2'}],
            'nodeInfo': {'kubeletVersion': 'v1.30.0'},
        },
    }]


@pytest.fixture
def raw_deployments():
    return [
        {
            'metadata': {'name': 'postgres-deployment', 'namespace': 'test-apps'},
            'spec': {'replicas': 2, 'strategy': {'type': 'RollingUpdate'},
                     'selector': {'matchLabels': {'app': 'postgres'}}},
            'status': {'availableReplicas': 1, 'readyReplicas': 1, 'updatedReplicas': 2},
        },
        {
            'metadata': {'name': 'nginx-deployment', 'namespace': 'test-apps'},
            'spec': {'replicas': 3, 'strategy': {'type': 'RollingUpdate'},
                     'selector': {'matchLabels': {'app': 'nginx'}}},
            'status': {'availableReplicas': 3, 'readyReplicas': 3, 'updatedReplicas': 3},
        },
    ]


@pytest.fixture
def raw_events():
    return [
        {
            'type': 'Warning',
            'reason': 'FailedScheduling',
            'message': '0/1 nodes are available: 1 Insufficient memory.',
            'count': 4,
            'firstTimestamp': '2026-01-04T10:00:00Z',
            'lastTimestamp': '2026-01-04T10:05:00Z',
            'involvedObject': {'kind': 'Pod', 'namespace': 'test-apps',
                               'name': 'postgres-deployment-5b8f6d9c4-uvwxy'},
        },
        {
            'type': 'Normal',
            'reason': 'Pulled',
            'message': 'Container image "nginx:latest" already present on machine',
            'firstTimestamp': '2026-01-04T09:00:01Z',
            'lastTimestamp': '2026-01-04T09:00:01Z',
            'involvedObject': {'kind': 'Pod', 'namespace': 'test-apps',
                               'name': 'nginx-deployment-7c79c4bf97-abcde'},
        },
        {
            'type': 'Warning',
            'reason': 'Unhealthy',
            'message': 'Readiness probe failed',
            'lastTimestamp': '2026-01-04T09:30:00Z',
            'involvedObject': {'kind': 'Pod', 'namespace': 'kube-system',
                               'name': 'coredns-5dd5756b68-zzzzz'},
        },
    ]


@pytest.fixture
def raw_metrics():
    return {
        'kind': 'PodMetricsList',
        'apiVersion': 'metrics.k8s.io/v1beta1',
        'items': [
            {
                'metadata': {'name': 'nginx-deployment-7c79c4bf97-abcde', 'namespace': 'test-apps'},
                'timestamp': '2026-01-04T10:10:00Z',
                'containers': [{'name': 'nginx', 'usage': {'cpu': '2m', 'memory': '3Mi'}}],
            },
            {
                'metadata': {'name': 'postgres-deployment-5b8f6d9c4-pqrst', 'namespace': 'test-apps'},
                'timestamp': '2026-01-04T10:10:00Z',
                'containers': [{'name': 'postgres', 'usage': {'cpu': '15m', 'memory': '40Mi'}}],
            },
            {
                'metadata': {'name': 'coredns-5dd5756b68-zzzzz', 'namespace': 'kube-system'},
                'timestamp': '2026-01-04T10:10:00Z',
                'containers': [{'name': 'coredns', 'usage': {'cpu': '3m', 'memory': '12Mi'}}],
            },
        ],
    }


@pytest.fixture
def snapshot(raw_namespaces, raw_pods, raw_nodes, raw_deployments, raw_events, raw_metrics):
    return ClusterSnapshot(
        namespaces=raw_namespaces['items'],
        pods=raw_pods,
        nodes=raw_nodes,
        deployments=raw_deployments,
        events=raw_events,
        metrics=raw_metrics,
    )


@pytest.fixture
def make_settings():
    """Factory for a complete, valid settings dict independent of the environment"""
    def _make(**overrides):
        settings = {
            'ignore_namespaces': ['kube-system', 'kube-public', 'kube-node-lease'],
            'health_threshold': 90.0,
            'include_node_info': True,
            'include_deployment_details': True,
            'include_resource_metrics': False,
            'analysis_type': 'standard',
            'debug_mode': False,
            'cluster_name': 'local-cluster',
            'cluster_platform': 'minikube',
            'cluster_cpu': '4 cores',
            'cluster_memory': '8Gi',
            'snapshot_dir': 'snapshot',
            'output_dir': 'output',
            'metrics_url': None,
        }
        settings.update(overrides)
        return settings
    return _make


@pytest.fixture
def snapshot_dir(tmp_path, raw_namespaces, raw_pods, raw_nodes, raw_deployments, raw_events):
    """The sample cluster dumped to disk (no metrics file)"""
    d = tmp_path / "snapshot"
    d.mkdir()
    (d / "namespaces.json").write_text(json.dumps(raw_namespaces))
    (d / "pods.json").write_text(json.dumps({'kind': 'PodList', 'items': raw_pods}))
    (d / "nodes.json").write_text(json.dumps({'kind': 'NodeList', 'items': raw_nodes}))
    (d / "deployments.json").write_text(json.dumps({'kind': 'DeploymentList', 'items': raw_deployments}))
    (d / "events.json").write_text(json.dumps({'kind': 'EventList', 'items': raw_events}))
    return d


@pytest.fixture
def temp_output_dir(tmp_path):
    """Temporary directory for test output files"""
    output_dir = tmp_path / "output"
    output_dir.mkdir()
    return output_dir
