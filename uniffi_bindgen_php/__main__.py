import sys

from uniffi_bindgen_php.cli import main

sys.exit(main())
