import sys
import click
import zirconium as zr
import zrlog
from autoinject import injector
from storecheck.exc import StorecheckError, ConfigError
from storecheck.util import parse_option_pairs
from storecheck.storage import AdapterController, Capability, Filesystem
from storecheck.conformance import run_conformance


@zr.configure
def register(config: zr.ApplicationConfig):
    config.register_file("./storecheck.toml")
    config.register_file("./.storecheck.toml")


@click.group
def main():
    zrlog.init_logging()


@main.command
@injector.inject
def adapters(controller: AdapterController = None):
    """List the adapters that can be built from a target string."""
    output = {}
    for cls in controller.known_adapters():
        doc = (cls.__doc__ or "").strip().split("\n")[0]
        output[cls.__name__] = doc
    ml = max(len(n) for n in output.keys()) + 2
    fstr = "{: <" + str(ml) + "}: {}"
    for name in output:
        print(fstr.format(name, output[name]))


@main.command
@click.argument("target", required=False, default=None)
@click.option("--adapter", "adapter_cls", default=None, help="Dotted path of the adapter class to check")
@click.option("--option", "-o", "options", multiple=True, help="Constructor argument as key=value")
@click.option("--verbose", "-v", count=True)
@click.option("--allow-non-empty", is_flag=True, default=False, help="Run even if the adapter already holds data; it will be deleted")
@injector.inject
def run(target, adapter_cls, options, verbose, allow_non_empty, controller: AdapterController = None):
    """Run the conformance suite against an adapter.

        The suite removes everything it finds at the adapter root after each test,
        so adapters that already hold data are refused unless --allow-non-empty is given.
    """
    try:
        kwargs = parse_option_pairs(options)
        if adapter_cls:
            factory = lambda: controller.load_adapter(adapter_cls, **kwargs)
        elif target:
            factory = lambda: controller.get_adapter(target, **kwargs)
        else:
            factory = controller.configured_adapter
        adapter = factory()
        capabilities = ", ".join(c.value for c in Capability if adapter.supports(c)) or "none"
        existing = Filesystem(adapter).list_contents()
        if existing and not allow_non_empty:
            raise ConfigError(f"Adapter [{adapter}] is not empty ({len(existing)} entries at its root), refusing to delete them", 1002)
        print(f"Checking {adapter} (optional capabilities: {capabilities})")
    except StorecheckError as ex:
        print(f"{ex.__class__.__name__}: {str(ex)}")
        sys.exit(2)
    result = run_conformance(factory, verbosity=verbose + 1)
    sys.exit(0 if result.wasSuccessful() else 1)
