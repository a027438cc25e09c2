# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from ownlens.cli import main

raise SystemExit(main())
