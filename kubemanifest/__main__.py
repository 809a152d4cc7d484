"""
CLI entry point, when used as a module: `python -m kubemanifest`.

Useful for debugging in the IDEs (use the start-mode "Module", module "kubemanifest").
"""
from kubemanifest import cli

if __name__ == '__main__':
    cli.main()
