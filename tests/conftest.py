import sys
import os

import pytest

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from src.common.models import ParsedTransaction


def node(text):
    """Field-tree leaf as produced by the XML-to-tree converter."""
    return {'_text': text}


def make_record(fecha, observ, importe, tipo, ref_corrie='', ref_origin=''):
    return {
        'fecha': node(fecha),
        'observ': node(observ),
        'importe': node(importe),
        'tipo': node(tipo),
        'ref_corrie': node(ref_corrie),
        'ref_origin': node(ref_origin),
    }


def make_tree(records):
    return {'NewDataSet': {'Estado_x0020_de_x0020_Cuenta': records}}


def make_tx(date, amount, type_code='Cr', reference='R1', channel='', **kwargs):
    return ParsedTransaction(
        date=date,
        reference_current=reference,
        reference_origin=kwargs.pop('reference_origin', ''),
        amount=amount,
        type_code=type_code,
        channel=channel,
        **kwargs,
    )


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def statement_records():
    """A January statement: opening 500, one credit, one debit, closings."""
    return [
        make_record('31/12/2023', 'Saldo Contable Anterior', '500.00', 'Cr'),
        make_record(
            '02/01/2024',
            'TRANSFERENCIA BANCAMOVIL ORDENANTE NOMBRE:JUAN PEREZ|CI:85010112345',
            '100.00', 'Cr', 'REF001', 'ORG001',
        ),
        make_record(
            '05/01/2024',
            'Pago servicio &lt;DET_PAGO&gt;Factura electricidad&lt;/DET_PAGO&gt; BENEFICIARIO: 0598123456789012',
            '50.00', 'Db', 'REF002', 'ORG002',
        ),
        make_record('31/01/2024', 'Saldo Contable Final', '550.00', 'Cr'),
        make_record('31/01/2024', 'Saldo Reservado', '0.00', 'Cr'),
        make_record('31/01/2024', 'Saldo Sobre Giro', '0.00', 'Cr'),
        make_record('31/01/2024', 'Saldo Disponible Final', '550.00', 'Cr'),
    ]


@pytest.fixture
def statement_tree(statement_records):
    return make_tree(statement_records)
