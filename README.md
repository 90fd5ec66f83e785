# helmify

`helmify` reads Kubernetes resources from standard input and writes a Helm chart from them.

## What it handles

Some resource kinds have a processor of their own:

- Deployment and DaemonSet: the processor moves image repository and tag, replica count (Deployment only) and container resource requests and limits into `values.yaml`. Each container also gets a `KUBERNETES_CLUSTER_DOMAIN` environment variable.
- Service: the processor moves the service type and ports into `values.yaml`.
- Ingress: backend service names are templated.
- ConfigMap: data entries become values. Keys ending in `.yaml`/`.yml` have their YAML content templated field by field. Keys ending in `.properties` have each property templated.
- Secret: every `data` and `stringData` key becomes a required value. `data` values are base64-encoded through the template.
- PersistentVolumeClaim: the storage class and the storage request and limit become values.
- Role, ClusterRole, RoleBinding, ClusterRoleBinding and ServiceAccount: names and subjects are templated.
- CustomResourceDefinition: the definition is templated. With `-crd-dir` it is written untemplated into `crds/` instead.
- cert-manager Issuer and Certificate.
- ValidatingWebhookConfiguration and MutatingWebhookConfiguration.

Any other kind goes through a default processor. It templates the metadata and keeps the rest of the object as it is. Namespace objects are dropped, because Helm manages the release namespace.

Object names lose the prefix that all application objects share. In its place the name uses the chart's `fullname` helper. `values.yaml` always holds `kubernetesClusterDomain: cluster.local`.

## Installation

```
pip install .
```

## Usage

Pipe manifests in and give a chart name. Without a name the chart is called `chart`.

```
kustomize build config/default | helmify mychart
cat my-app.yaml | helmify mychart
cat my-app.yaml | helmify deploy/charts/mychart
```

The name may include a path: `deploy/charts/mychart` creates the chart in that directory. The chart name must be a valid DNS-1123 subdomain, for example `my-chart` or `my.chart`.

If `Chart.yaml` already exists, helmify leaves it, `.helmignore` and `templates/_helpers.tpl` in place. Every run overwrites `values.yaml` and each template file the run produces. Documents that fail to parse are logged and skipped. The command exits with status 1 in three cases: the chart name is invalid, a resource cannot be processed, or nothing is piped into standard input.

### Flags

| Flag | Meaning |
|------|---------|
| `-h`, `-help` | Print help |
| `-version` | Print version, build time and commit |
| `-v` | Verbose output (warnings and info) |
| `-vv` | Very verbose output (adds debug) |
| `-crd-dir` | Put CustomResourceDefinitions into the `crds` directory, untemplated |
| `-image-pull-secrets` | Give Deployment and DaemonSet pod specs that lack `imagePullSecrets` one taken from the `imagePullSecrets` value |

Each flag is also accepted with two dashes, for example `--crd-dir`.

## Generated layout

```
mychart/
├── .helmignore
├── Chart.yaml
├── values.yaml
├── crds/            (only with -crd-dir)
└── templates/
    ├── _helpers.tpl
    └── ...
```

## Using it as a library

```python
from helmify.app import start
from helmify.config import Config

with open("my-app.yaml") as stream:
    start(stream, Config(chart_name="mychart"))
```

For finer control, build an `helmify.app.AppContext`, register processors with `with_processors` and `with_default_processor`, and feed it objects with `add`. Objects come from `helmify.manifest.decode`, and `create_helm` writes the chart. New processors subclass `helmify.model.Processor` and return a `helmify.model.Template`, such as `StaticTemplate`.

## What it does not do

helmify only writes chart files. It does not run, lint or package the chart, and it does not contact a cluster. The templates it writes are not checked by rendering them.

## Running the tests

```
pip install .[test]
pytest
```