# foundry

A library for describing KVM virtual machines as declarative YAML resources
(`apiVersion: foundry.cofront.xyz/v1alpha1`, `kind: VirtualMachine`). It can:

- load and validate VM specs from YAML, filling in defaults (`foundry.loader`);
- generate a libvirt domain XML definition from a spec (`foundry.domain`);
- derive deterministic MAC addresses, tap interface names and volume names
  from IPv4 addresses and VM names (`foundry.naming`);
- keep the whole resource, as YAML, in a domain's custom libvirt metadata
  (`foundry.metadata`);
- track lifecycle phases and status conditions (`foundry.phases`,
  `foundry.conditions`);
- render VMs as a table, YAML or JSON (`foundry.output`).

The resource types themselves (`VirtualMachine`, `VirtualMachineSpec`,
`VMPhase`, `ConditionStatus` and the rest) live in `foundry.models`.

## Installation

```
pip install .
```

## A VM spec

```yaml
apiVersion: foundry.cofront.xyz/v1alpha1
kind: VirtualMachine
metadata:
  name: web-server
spec:
  vcpus: 2
  memoryGiB: 4
  bootDisk:
    sizeGB: 50
    image: fedora-43.qcow2
  dataDisks:
    - device: vdb
      sizeGB: 100
  networkInterfaces:
    - ip: 10.55.22.22/24
      gateway: 10.55.22.1
      bridge: br0
  cloudInit:
    fqdn: web-server.example.com
```

When loaded, omitted fields get defaults: `cpuMode: host-model`,
`storagePool: foundry-vms`, boot disk `format: qcow2` and
`imagePool: foundry-images`, `autostart: true`, and phase `Pending`. The name
and the cloud-init FQDN are lower-cased.

## Usage

```python
from foundry.loader import load_from_file, save_to_file
from foundry.domain import generate_domain_xml
from foundry.naming import mac_from_ip, interface_name_from_ip, volume_name_boot
from foundry.output import Options, Format, new_formatter
from foundry import phases

vm = load_from_file("web-server.yaml")   # validated, defaults applied
xml = generate_domain_xml(vm)            # libvirt <domain> definition as a string

mac_from_ip("10.55.22.22")               # 'be:ef:0a:37:16:16'
interface_name_from_ip("10.55.22.22")    # 'vm0a371616'
volume_name_boot("web-server")           # 'web-server_boot.qcow2'

phases.transition_to_creating(vm)        # Pending -> Creating
phases.transition_to_running(vm)         # Creating -> Running

formatter = new_formatter(Options(format=Format.TABLE))
print(formatter.format_vm_list([vm]), end="")

save_to_file(vm, "web-server.out.yaml")
```

Errors are raised as exceptions:

- `foundry.loader.LoadError` for unreadable files, malformed YAML, a wrong
  `apiVersion` or `kind`, and specs that fail validation;
- `foundry.domain.DomainXMLError` for interface addresses that are not valid
  IPv4 addresses;
- `foundry.phases.PhaseTransitionError` for phase changes that are not allowed;
- `ValueError` from `foundry.output.new_formatter` and
  `foundry.output.validate_format` for unknown formats.

### Status conditions

`foundry.conditions` adds, updates, queries and removes conditions in a VM's
status (`set_condition`, `get_condition`, `is_condition_true`,
`is_condition_false`, `remove_condition`) and offers shortcuts such as
`mark_ready`, `mark_storage_failed` and `mark_failed`. A condition's
transition time only changes when its status changes.

### Storing specs in libvirt metadata

`foundry.metadata.MetadataClient` wraps any object that provides
`domain_set_metadata(dom, typ, metadata, key, uri, flags)` and
`domain_get_metadata(dom, typ, uri, flags)`. It uses that object to `store`,
`load`, `update` (which increments the generation first), `delete` and check
whether the YAML resource `exists` in the domain's custom metadata under the
`http://foundry.cofront.xyz/v1alpha1` namespace. Failures raise
`foundry.metadata.MetadataError`.

## What this package does not do

- It does not connect to a libvirt daemon; you supply the connection object
  that `MetadataClient` calls, and you define domains from the generated XML
  yourself.
- It does not create storage volumes or build cloud-init ISOs; it only names
  the volumes the domain XML refers to.
- It has no command-line interface.

## Running the tests

```
pip install ".[test]"
pytest
```