"""Account file parsing and settings loading."""

import os
import tempfile
from pathlib import Path
from unittest import TestCase, mock

import base58
import pyntelope
from Crypto.Hash import RIPEMD160

from stakeclaim.config import ConfigError, load_config, parse_accounts, validate_name, validate_private_key

from fakes import DEV_KEY


def k1_key(wif: str) -> str:
    """Re-encode a WIF key in the PVT_K1_ form."""
    secret = base58.b58decode_check(wif)[1:]
    return "PVT_K1_" + base58.b58encode(secret + RIPEMD160.new(secret + b"K1").digest()[:4]).decode("ascii")


class ParseAccountsTest(TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp.cleanup)

    def write(self, text: str) -> Path:
        path = Path(self.tmp.name) / "config.txt"
        path.write_text(text)
        return path

    def test_parses_accounts_skipping_comments_and_blanks(self):
        path = self.write(
            "# address:permission:key:proxy\n"
            "\n"
            f"alice.wam:active:{DEV_KEY}:proxy4nation\n"
            f"   bob.wam:claim:{DEV_KEY}:greymassvote   \n"
        )
        accounts = parse_accounts(path)
        self.assertEqual([a.address for a in accounts], ["alice.wam", "bob.wam"])
        self.assertEqual(accounts[1].permission, "claim")
        self.assertEqual(accounts[1].proxy, "greymassvote")
        self.assertEqual(accounts[0].private_key, DEV_KEY)

    def test_key_not_in_repr(self):
        accounts = parse_accounts(self.write(f"alice.wam:active:{DEV_KEY}:proxy4nation\n"))
        self.assertNotIn(DEV_KEY, repr(accounts[0]))

    def test_missing_file(self):
        with self.assertRaises(ConfigError):
            parse_accounts(Path(self.tmp.name) / "nope.txt")

    def test_no_accounts(self):
        with self.assertRaises(ConfigError):
            parse_accounts(self.write("# only a comment\n\n"))

    def test_wrong_field_count_reports_line(self):
        path = self.write(f"# header\nalice.wam:active:{DEV_KEY}\n")
        with self.assertRaises(ConfigError) as cm:
            parse_accounts(path)
        self.assertIn("line 2", str(cm.exception))
        self.assertNotIn(DEV_KEY, str(cm.exception))

    def test_empty_field(self):
        with self.assertRaises(ConfigError):
            parse_accounts(self.write(f"alice.wam::{DEV_KEY}:proxy4nation\n"))

    def test_invalid_key(self):
        with self.assertRaises(ConfigError) as cm:
            parse_accounts(self.write("alice.wam:active:notakey0:proxy4nation\n"))
        self.assertIn("Invalid private key on line 1", str(cm.exception))

    def test_invalid_names_report_line(self):
        cases = {
            "proxy": f"alice.wam:active:{DEV_KEY}:Proxy4Nation\n",
            "address": f"waytoolongaccountname:active:{DEV_KEY}:proxy4nation\n",
            "permission": f"alice.wam:act!ve:{DEV_KEY}:proxy4nation\n",
        }
        for field, line in cases.items():
            with self.subTest(field=field):
                path = self.write(f"alice.wam:active:{DEV_KEY}:proxy4nation\n{line}")
                with self.assertRaises(ConfigError) as cm:
                    parse_accounts(path)
                self.assertIn(f"Invalid {field}", str(cm.exception))
                self.assertIn("line 2", str(cm.exception))
                self.assertNotIn(DEV_KEY, str(cm.exception))

    def test_k1_key_is_stored_as_signable_wif(self):
        accounts = parse_accounts(self.write(f"alice.wam:active:{k1_key(DEV_KEY)}:proxy4nation\n"))
        self.assertEqual(accounts[0].private_key, DEV_KEY)
        signature = pyntelope.utils.sign_bytes(bytes_=b"claimgbmvote", key=accounts[0].private_key)
        self.assertTrue(signature.startswith("SIG_K1_"))


class ValidatePrivateKeyTest(TestCase):
    def test_wif(self):
        self.assertEqual(validate_private_key(DEV_KEY), DEV_KEY)

    def test_bad_checksum(self):
        with self.assertRaises(ValueError):
            validate_private_key(DEV_KEY[:-1] + ("4" if DEV_KEY[-1] != "4" else "5"))

    def test_k1_wrong_length(self):
        with self.assertRaises(ValueError):
            validate_private_key("PVT_K1_abc")

    def test_k1_converted_to_wif(self):
        self.assertEqual(validate_private_key(k1_key(DEV_KEY)), DEV_KEY)

    def test_k1_bad_checksum(self):
        secret = base58.b58decode_check(DEV_KEY)[1:]
        bad = "PVT_K1_" + base58.b58encode(secret + b"\x00\x00\x00\x00").decode("ascii")
        with self.assertRaises(ValueError) as cm:
            validate_private_key(bad)
        self.assertIn("checksum", str(cm.exception))


class ValidateNameTest(TestCase):
    def test_valid(self):
        for name in ("eosio", "alice.wam", "proxy4nation", "a.b.c"):
            self.assertEqual(validate_name(name), name)

    def test_invalid(self):
        for name in ("Proxy4Nation", "proxy6", "thirteenchars", "waytoolongaccountname", "a b"):
            with self.subTest(name=name):
                with self.assertRaises(ValueError):
                    validate_name(name)


class LoadConfigTest(TestCase):
    def test_packaged_defaults(self):
        with mock.patch.dict(os.environ, {}, clear=False):
            os.environ.pop("STAKECLAIM_ENDPOINTS", None)
            os.environ.pop("STAKECLAIM_RPC_TIMEOUT", None)
            cfg = load_config()
        self.assertEqual(cfg["chain"]["contract"], "eosio")
        self.assertEqual(cfg["chain"]["voters_table"], "voters")
        self.assertEqual(len(cfg["chain"]["endpoints"]), 15)
        self.assertEqual(cfg["schedule"]["claim_interval"], 86400)
        self.assertEqual(cfg["schedule"]["wake_pad"], 5)
        self.assertEqual(cfg["schedule"]["cooldown"], 30)

    def test_env_overrides(self):
        env = {"STAKECLAIM_ENDPOINTS": "a.example, b.example,,", "STAKECLAIM_RPC_TIMEOUT": "3.5"}
        with mock.patch.dict(os.environ, env):
            cfg = load_config()
        self.assertEqual(cfg["chain"]["endpoints"], ["a.example", "b.example"])
        self.assertEqual(cfg["timeout"]["rpc"], 3.5)

    def test_bad_timeout_override(self):
        with mock.patch.dict(os.environ, {"STAKECLAIM_RPC_TIMEOUT": "soon"}):
            with self.assertRaises(ConfigError):
                load_config()

    def test_missing_settings_file(self):
        with self.assertRaises(ConfigError):
            load_config("/nonexistent/settings.toml")

    def test_missing_table(self):
        with tempfile.TemporaryDirectory() as d:
            path = Path(d) / "s.toml"
            path.write_text('[chain]\nendpoints = ["a"]\n')
            with self.assertRaises(ConfigError):
                load_config(path)
